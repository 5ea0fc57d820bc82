"""Issuer node errors."""

from ..core.error import BaseError


class IssuerError(BaseError):
    """Base class for issuer node errors."""


class IssuerNotSupportedError(IssuerError):
    """No issuer node is registered for an issuer."""


class GetClaimError(IssuerError):
    """A credential could not be read from the issuer node."""


class CreateClaimError(IssuerError):
    """A credential could not be created on the issuer node."""


class IssuerConfigError(IssuerError):
    """The issuer configuration is malformed."""
