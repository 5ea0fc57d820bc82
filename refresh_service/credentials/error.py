"""Credential processing errors."""

from ..core.error import BaseError


class CredentialError(BaseError):
    """Base class for credential processing errors."""


class ClaimError(CredentialError):
    """The binary core claim of a credential cannot be read."""


class JsonLdError(CredentialError):
    """JSON-LD document loading or processing failed."""


class SerializationFieldError(JsonLdError):
    """A field is not mapped to a claim slot by the type's serialization info."""
