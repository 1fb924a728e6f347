"""Typed hierarchical configuration store."""

from cmsconf.config.config_manager import ConfigManager
from cmsconf.config.errors import (
    ConfigError,
    ConfigValidationError,
    DuplicateKeyError,
    ParseError,
    PathNotFound,
    TypeMismatch,
    UnknownKeyError,
    ValidationError,
    ValueNotAllowed,
)
from cmsconf.config.loader import ConfigLoader, load_config, loads
from cmsconf.config.resolver import load_layers, merge_overrides
from cmsconf.config.rules import CMS_REQUIRED_SECTIONS, CMS_RULES
from cmsconf.config.schema import SchemaValidator, ValidationResult, ValidationRule, rule, validate
from cmsconf.config.tree import ConfigPath, ConfigTree
from cmsconf.config.writer import dump, dumps

__all__ = [
    "CMS_REQUIRED_SECTIONS",
    "CMS_RULES",
    "ConfigError",
    "ConfigLoader",
    "ConfigManager",
    "ConfigPath",
    "ConfigTree",
    "ConfigValidationError",
    "DuplicateKeyError",
    "ParseError",
    "PathNotFound",
    "SchemaValidator",
    "TypeMismatch",
    "UnknownKeyError",
    "ValidationError",
    "ValidationResult",
    "ValidationRule",
    "ValueNotAllowed",
    "dump",
    "dumps",
    "load_config",
    "load_layers",
    "loads",
    "merge_overrides",
    "rule",
    "validate",
]
