"""Reading of the binary core claim embedded in credential proofs."""

from enum import Enum

from .error import ClaimError
from .models import W3CCredential

CLAIM_SLOT_SIZE = 32
CLAIM_SLOTS = 8
FLAGS_BYTE_INDEX = 16
MERKLIZED_FLAG_SHIFT = 5
MERKLIZED_FLAG_MASK = 0b111


class MerklizedRootPosition(Enum):
    """Where the merkle root of a merklized credential is stored in the claim."""

    NONE = "none"
    INDEX = "index"
    VALUE = "value"


MERKLIZED_FLAGS = {
    0: MerklizedRootPosition.NONE,
    1: MerklizedRootPosition.INDEX,
    2: MerklizedRootPosition.VALUE,
}


def core_claim_bytes(credential: W3CCredential) -> bytes:
    """
    Return the binary core claim signed by the issuer.

    Raises:
        ClaimError: If no proof carries a well formed core claim

    """
    for proof in credential.proofs:
        core_claim = proof.get("coreClaim") if isinstance(proof, dict) else None
        if not core_claim:
            continue
        try:
            claim = bytes.fromhex(core_claim)
        except ValueError as err:
            raise ClaimError("core claim is not a hex string") from err
        if len(claim) != CLAIM_SLOT_SIZE * CLAIM_SLOTS:
            raise ClaimError(
                f"core claim has {len(claim)} bytes, "
                f"expected {CLAIM_SLOT_SIZE * CLAIM_SLOTS}"
            )
        return claim
    raise ClaimError(f"credential '{credential.id}' has no core claim in its proofs")


def merklized_position(credential: W3CCredential) -> MerklizedRootPosition:
    """Read the merklized root position from the claim flags."""
    flags = core_claim_bytes(credential)[FLAGS_BYTE_INDEX]
    merklized = (flags >> MERKLIZED_FLAG_SHIFT) & MERKLIZED_FLAG_MASK
    position = MERKLIZED_FLAGS.get(merklized)
    if position is None:
        raise ClaimError(f"invalid merklized flag {merklized:#05b}")
    return position
