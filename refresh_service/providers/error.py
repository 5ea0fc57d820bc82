"""Data provider errors."""

from ..core.error import BaseError


class ProviderError(BaseError):
    """Base class for data provider errors."""


class RequestSchemaError(ProviderError):
    """The request template of a provider cannot be resolved."""


class ResponseSchemaError(ProviderError):
    """A provider response does not fit the declared response schema."""


class DataProviderError(ProviderError):
    """The data provider could not be reached or answered with an error."""


class ProviderNotFoundError(ProviderError):
    """No data provider is configured for a credential type."""


class ProviderConfigError(ProviderError):
    """The provider configuration file is malformed."""
