"""Credential refresh errors."""

from enum import Enum

from ..core.error import BaseError
from ..issuer.error import GetClaimError


class NotUpdatableReason(Enum):
    """Why a credential cannot be refreshed."""

    NOT_EXPIRED = "not-expired"
    MISSING_ID = "missing-id"
    NOT_OWNER = "not-owner"
    NO_PROVIDER = "no-provider"
    NO_INDEX_CHANGE = "no-index-change"


class RefreshError(BaseError):
    """Base class for credential refresh errors."""


class CredentialNotUpdatableError(RefreshError):
    """The credential does not qualify for a refresh."""

    def __init__(self, *args, reason: NotUpdatableReason, **kwargs):
        """Initialize the error with the reason the credential was rejected."""
        super().__init__(*args, **kwargs)
        self.reason = reason


class ReissuedCredentialFetchError(GetClaimError):
    """A refreshed credential was created but could not be read back."""

    def __init__(self, *args, credential_id: str, **kwargs):
        """Initialize the error with the id of the created credential."""
        super().__init__(*args, **kwargs)
        self.credential_id = credential_id
