"""Freshness check of the global identity state claimed by auth proofs."""

import logging

from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, NamedTuple, Sequence

from ..did.error import DIDError
from ..did.iden3 import did_from_id_int, parse_did
from ..did.method_registry import MethodRegistry
from .contract import StateContract
from .error import StateContractError, StateVerificationError

LOGGER = logging.getLogger(__name__)

AUTH_V2_CIRCUIT = "authV2"
DEFAULT_STATE_VALID_DURATION = timedelta(minutes=15)
# order of the BN254 scalar field the circuit signals live in
SNARK_SCALAR_FIELD = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)


class AuthV2PubSignals(NamedTuple):
    """Public signals of an authV2 proof."""

    user_id: int
    challenge: int
    gist_root: int

    @classmethod
    def parse(cls, pub_signals: Sequence[str]) -> "AuthV2PubSignals":
        """Parse the decimal public signals of a proof."""
        if len(pub_signals) != len(cls._fields):
            raise StateVerificationError(
                f"authV2 proof must have {len(cls._fields)} public signals, "
                f"got {len(pub_signals)}"
            )
        try:
            values = [int(str(signal), 10) for signal in pub_signals]
        except ValueError as err:
            raise StateVerificationError("public signals must be integers") from err
        for name, value in zip(cls._fields, values):
            if not 0 <= value < SNARK_SCALAR_FIELD:
                raise StateVerificationError(
                    f"public signal {name} is outside the scalar field"
                )
        return cls(*values)


class StateVerifier:
    """Check that a proof's GIST root is registered on chain and recent enough."""

    def __init__(
        self,
        contracts: Mapping[int, StateContract],
        registry: MethodRegistry,
        valid_duration: timedelta = DEFAULT_STATE_VALID_DURATION,
        clock: Callable[[], datetime] = None,
    ):
        """
        Initialize the verifier.

        Args:
            contracts: state contracts keyed by chain id
            registry: DID methods used to read the user's chain
            valid_duration: how long a replaced root stays acceptable
            clock: returns the current time as an aware datetime

        """
        self.contracts = dict(contracts)
        self.registry = registry
        self.valid_duration = valid_duration
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def verify(self, circuit_id: str, pub_signals: Sequence[str]):
        """
        Verify the public signals of an auth proof.

        Raises:
            StateVerificationError: If the claimed state cannot be accepted

        """
        if circuit_id != AUTH_V2_CIRCUIT:
            raise StateVerificationError(f"circuit '{circuit_id}' is not supported")
        signals = AuthV2PubSignals.parse(pub_signals)

        try:
            user_did = did_from_id_int(signals.user_id, self.registry)
            chain_id = parse_did(user_did, self.registry).network.chain_id
        except DIDError as err:
            raise StateVerificationError(
                f"error converting userID '{signals.user_id}' to userDID"
            ) from err

        contract = self.contracts.get(chain_id)
        if contract is None:
            raise StateVerificationError(f"not supported chainID '{chain_id}'")

        try:
            info = await contract.get_gist_root_info(signals.gist_root)
        except StateContractError as err:
            raise StateVerificationError(
                f"error getting global state info by state '{signals.gist_root}'"
            ) from err

        if info.created_at_timestamp == 0:
            raise StateVerificationError(
                f"root {signals.gist_root} doesn't exist in smart contract"
            )
        if info.root != signals.gist_root:
            raise StateVerificationError(
                "invalid global state info in the smart contract, "
                f"expected root {signals.gist_root}, got {info.root}"
            )
        if info.replaced_by_root != 0:
            replaced_at = datetime.fromtimestamp(
                info.replaced_at_timestamp, timezone.utc
            )
            if self.clock() - replaced_at > self.valid_duration:
                raise StateVerificationError(
                    "global state is too old, replaced timestamp is "
                    f"{info.replaced_at_timestamp}"
                )
        LOGGER.debug("Global state %s verified for %s", signals.gist_root, user_did)
