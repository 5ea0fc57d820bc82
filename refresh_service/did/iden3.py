"""Conversion between iden3 identity identifiers and DIDs."""

from typing import NamedTuple

import base58

from .error import DIDError
from .method_registry import DIDNetwork, MethodRegistry

ID_LENGTH = 31
TYPE_LENGTH = 2
GENESIS_LENGTH = 27
DID_SCHEMA = "did"


class ParsedDID(NamedTuple):
    """An iden3 DID split into its network and identifier."""

    network: DIDNetwork
    id: bytes


def checksum(id_type: bytes, genesis: bytes) -> bytes:
    """Sum of the type and genesis bytes as two little-endian bytes."""
    total = sum(id_type) + sum(genesis)
    return (total & 0xFFFF).to_bytes(2, "little")


def id_from_int(value: int) -> bytes:
    """
    Return the identifier encoded as a little-endian integer.

    Raises:
        DIDError: If the value is not a valid identifier

    """
    if value < 0 or value.bit_length() > ID_LENGTH * 8:
        raise DIDError(f"{value} is not a valid identity id")
    id_bytes = value.to_bytes(ID_LENGTH, "little")
    check_id(id_bytes)
    return id_bytes


def check_id(id_bytes: bytes):
    """Verify the length and checksum of an identifier."""
    if len(id_bytes) != ID_LENGTH:
        raise DIDError(f"identity id must be {ID_LENGTH} bytes, got {len(id_bytes)}")
    id_type = id_bytes[:TYPE_LENGTH]
    genesis = id_bytes[TYPE_LENGTH : TYPE_LENGTH + GENESIS_LENGTH]
    if checksum(id_type, genesis) != id_bytes[TYPE_LENGTH + GENESIS_LENGTH :]:
        raise DIDError("identity id checksum is invalid")


def did_from_id(id_bytes: bytes, registry: MethodRegistry) -> str:
    """Build the DID string of an identifier."""
    check_id(id_bytes)
    network = registry.by_type(id_bytes[:TYPE_LENGTH])
    return ":".join(
        (
            DID_SCHEMA,
            network.method,
            network.blockchain,
            network.network,
            base58.b58encode(id_bytes).decode("ascii"),
        )
    )


def did_from_id_int(value: int, registry: MethodRegistry) -> str:
    """Build the DID string of an identifier given as a circuit signal."""
    return did_from_id(id_from_int(value), registry)


def parse_did(did: str, registry: MethodRegistry) -> ParsedDID:
    """
    Parse a `did:<method>:<blockchain>:<network>:<id>` string.

    Raises:
        DIDError: If the DID is malformed, unsupported or inconsistent

    """
    parts = did.split(":")
    if len(parts) != 5 or parts[0] != DID_SCHEMA:
        raise DIDError(f"'{did}' is not a supported DID")
    network = registry.by_name(*parts[1:4])
    try:
        id_bytes = base58.b58decode(parts[4])
    except ValueError as err:
        raise DIDError(f"'{did}' has an invalid identifier") from err
    check_id(id_bytes)
    if id_bytes[:TYPE_LENGTH] != network.id_type:
        raise DIDError(f"identifier type of '{did}' does not match its network")
    return ParsedDID(network, id_bytes)


def id_to_int(id_bytes: bytes) -> int:
    """Return the identifier as the integer used in circuit signals."""
    return int.from_bytes(id_bytes, "little")
