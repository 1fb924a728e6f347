"""Utility modules for the configuration store."""

from cmsconf.utils.logging_utils import setup_logging

__all__ = [
    "setup_logging",
]
