"""Errors for config modules."""

from ..core.error import BaseError


class ConfigError(BaseError):
    """A base exception for all configuration errors."""


class SettingsError(ConfigError):
    """The base exception raised by `BaseSettings` implementations."""


class ArgsParseError(ConfigError):
    """Error raised when there is a problem parsing the command-line arguments."""
