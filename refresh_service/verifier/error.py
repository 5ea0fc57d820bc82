"""Proof verification errors."""

from ..core.error import BaseError


class VerifierError(BaseError):
    """Base class for proof verification errors."""


class StateContractError(VerifierError):
    """The identity state contract could not be queried."""


class StateVerificationError(VerifierError):
    """The global state root claimed by a proof is not acceptable."""
