"""Settings implementation."""

from typing import Mapping

from .base import BaseSettings


class Settings(BaseSettings):
    """Settings parsed once at startup."""

    def __init__(self, values: Mapping[str, object] = None):
        """
        Initialize a Settings object.

        Args:
            values: settings keyed by dotted name, such as `server.port`

        """
        self._values = dict(values or {})

    def get_value(self, *var_names, default=None):
        """Fetch a setting by the first of `var_names` that is defined."""
        for name in var_names:
            if name in self._values:
                return self._values[name]
        return default

    def __contains__(self, index):
        """Define 'in' operator."""
        return index in self._values

    def __iter__(self):
        """Iterate settings keys."""
        return iter(self._values)

    def __len__(self):
        """Fetch the number of settings."""
        return len(self._values)
