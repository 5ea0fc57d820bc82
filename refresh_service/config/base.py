"""Configuration base classes."""

from abc import abstractmethod
from typing import Any, Iterator, Mapping, Optional


class BaseSettings(Mapping[str, Any]):
    """Read-only mapping of dotted setting keys to values."""

    @abstractmethod
    def get_value(self, *var_names, default: Optional[Any] = None) -> Any:
        """Fetch the first defined setting among `var_names`, else `default`."""

    @abstractmethod
    def __iter__(self) -> Iterator:
        """Iterate settings keys."""

    @abstractmethod
    def __len__(self):
        """Fetch the number of settings."""

    def __getitem__(self, index):
        """Fetch a setting, raising `KeyError` when it is undefined."""
        if not isinstance(index, str):
            raise TypeError(f"Index {index} must be a string")
        missing = object()
        result = self.get_value(index, default=missing)
        if result is missing:
            raise KeyError("Undefined index: {}".format(index))
        return result
