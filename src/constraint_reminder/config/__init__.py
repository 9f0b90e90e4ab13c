"""Runtime configuration: defaults, validation and TOML/env loading."""

from constraint_reminder.config.loader import (
    ConfigLoadError,
    injection_configuration,
    load_config,
    matching_configuration,
)
from constraint_reminder.config.schema import ConfigValidationError, default_config

__all__ = [
    "ConfigLoadError",
    "ConfigValidationError",
    "default_config",
    "injection_configuration",
    "load_config",
    "matching_configuration",
]
