"""DID errors."""

from ..core.error import BaseError


class DIDError(BaseError):
    """A DID or identity identifier is invalid or unsupported."""
