"""CMS Configuration Store

Typed hierarchical configuration store for CMS installation settings.
"""

__version__ = "0.1.0"

# Configuration
from cmsconf.config import (
    ConfigLoader,
    ConfigManager,
    ConfigTree,
    SchemaValidator,
    ValidationRule,
)

# Logging
from cmsconf.utils import setup_logging

__all__ = [
    "ConfigLoader",
    "ConfigManager",
    "ConfigTree",
    "SchemaValidator",
    "ValidationRule",
    "setup_logging",
]
