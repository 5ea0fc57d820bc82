"""Envelope packers for plain and zero-knowledge authenticated messages."""

import json
import logging

from abc import ABC, abstractmethod
from typing import (
    Any,
    Awaitable,
    Callable,
    Mapping,
    NamedTuple,
    Sequence,
    Tuple,
)

from ..did.error import DIDError
from ..did.iden3 import did_from_id_int
from ..did.method_registry import MethodRegistry
from ..models.base import BaseModelError
from ..verifier.error import VerifierError
from ..verifier.state import AuthV2PubSignals
from .error import PackerError
from .message import BasicMessage
from .message_types import MEDIA_TYPE_PLAIN_MESSAGE, MEDIA_TYPE_ZKP_MESSAGE
from .util import b64_to_bytes

LOGGER = logging.getLogger(__name__)

GROTH16 = "groth16"


class Packer(ABC):
    """Packs and unpacks envelopes of one media type."""

    media_type: str = None

    @abstractmethod
    async def pack(self, payload: bytes, **params) -> bytes:
        """Wrap a serialized message into an envelope."""

    @abstractmethod
    async def unpack(self, envelope: bytes) -> BasicMessage:
        """Open an envelope and return the message it carries."""


def parse_message(payload: bytes) -> BasicMessage:
    """Parse a serialized basic message."""
    try:
        return BasicMessage.from_json(payload)
    except BaseModelError as err:
        raise PackerError("invalid message payload") from err


class PlainMessagePacker(Packer):
    """Unauthenticated JSON messages."""

    media_type = MEDIA_TYPE_PLAIN_MESSAGE

    async def pack(self, payload: bytes, **params) -> bytes:
        """Plain messages travel as their own JSON serialization."""
        return parse_message(payload).to_json().encode("utf-8")

    async def unpack(self, envelope: bytes) -> BasicMessage:
        """Parse a plain JSON message."""
        return parse_message(envelope)


class ProofVerifier(ABC):
    """zk-SNARK proof verification capability."""

    @abstractmethod
    async def verify(
        self,
        circuit_id: str,
        signing_input: bytes,
        proof: Mapping[str, Any],
        pub_signals: Sequence[str],
        verification_key: Mapping[str, Any],
    ) -> bool:
        """
        Check a proof against a verification key.

        Implementations must also check that the proof's challenge commits to
        `signing_input`, the `header.payload` part of the token.
        """


class ProvingMethod(NamedTuple):
    """Proof algorithm and circuit a token declares."""

    alg: str
    circuit_id: str


class VerificationParams(NamedTuple):
    """Verification key and public signal check for one proving method."""

    key: Mapping[str, Any]
    verify_signals: Callable[[str, Sequence[str]], Awaitable[None]]


class ZKPToken(NamedTuple):
    """Decoded parts of a JSON web zero-knowledge token."""

    header: Mapping[str, Any]
    payload: bytes
    proof: Mapping[str, Any]
    pub_signals: Sequence[str]
    signing_input: bytes

    @property
    def proving_method(self) -> ProvingMethod:
        """Algorithm and circuit declared in the header."""
        return ProvingMethod(self.header.get("alg"), self.header.get("circuitId"))

    @classmethod
    def parse(cls, envelope: bytes) -> "ZKPToken":
        """Decode a compact `header.payload.proof` token."""
        try:
            token = envelope.decode("ascii").strip()
        except UnicodeDecodeError as err:
            raise PackerError("token is not ASCII") from err
        parts = token.split(".")
        if len(parts) != 3:
            raise PackerError("token must have three parts")
        try:
            header = json.loads(b64_to_bytes(parts[0], urlsafe=True))
            payload = b64_to_bytes(parts[1], urlsafe=True)
            zk_proof = json.loads(b64_to_bytes(parts[2], urlsafe=True))
        except ValueError as err:
            raise PackerError("token parts are not valid base64url JSON") from err
        if not isinstance(header, dict) or not isinstance(zk_proof, dict):
            raise PackerError("token header and proof must be JSON objects")
        if not header.get("alg") or not header.get("circuitId"):
            raise PackerError("token header must declare 'alg' and 'circuitId'")
        proof = zk_proof.get("proof")
        pub_signals = zk_proof.get("pub_signals")
        if not isinstance(proof, dict) or not isinstance(pub_signals, list):
            raise PackerError("token proof must carry 'proof' and 'pub_signals'")
        return cls(
            header=header,
            payload=payload,
            proof=proof,
            pub_signals=pub_signals,
            signing_input=f"{parts[0]}.{parts[1]}".encode("ascii"),
        )


class ZKPPacker(Packer):
    """Messages authenticated by a zero-knowledge proof of DID ownership."""

    media_type = MEDIA_TYPE_ZKP_MESSAGE

    def __init__(
        self,
        proof_verifier: ProofVerifier,
        verifications: Mapping[ProvingMethod, VerificationParams],
        registry: MethodRegistry,
    ):
        """
        Initialize the packer.

        Args:
            proof_verifier: checks the zk-SNARK itself
            verifications: accepted proving methods with their keys and checks
            registry: DID methods used to derive the sender from the proof

        """
        self.proof_verifier = proof_verifier
        self.verifications = dict(verifications)
        self.registry = registry

    async def pack(self, payload: bytes, **params) -> bytes:
        """Proof generation is not available to this service."""
        raise PackerError("packing zero-knowledge messages is not supported")

    async def unpack(self, envelope: bytes) -> BasicMessage:
        """
        Verify a token and return its message.

        Raises:
            PackerError: If the proof, the claimed state or the sender is invalid

        """
        token = ZKPToken.parse(envelope)
        method = token.proving_method
        params = self.verifications.get(method)
        if params is None:
            raise PackerError(
                f"message was packed with unsupported circuit '{method.circuit_id}' "
                f"and alg '{method.alg}'"
            )

        valid = await self.proof_verifier.verify(
            method.circuit_id,
            token.signing_input,
            token.proof,
            token.pub_signals,
            params.key,
        )
        if not valid:
            raise PackerError("message proof is invalid")

        try:
            await params.verify_signals(method.circuit_id, token.pub_signals)
        except VerifierError as err:
            raise PackerError("message public signals are invalid") from err

        message = parse_message(token.payload)
        self.verify_sender(token, message)
        return message

    def verify_sender(self, token: ZKPToken, message: BasicMessage):
        """Require the message sender to be the identity that produced the proof."""
        if not message.from_:
            raise PackerError("sender of message is not set")
        try:
            user_id = AuthV2PubSignals.parse(token.pub_signals).user_id
            sender = did_from_id_int(user_id, self.registry)
        except (DIDError, VerifierError) as err:
            raise PackerError("failed to read the sender from the proof") from err
        if sender != message.from_:
            raise PackerError(
                f"sender of message '{message.from_}' is not the proof owner '{sender}'"
            )


class PackageManager:
    """Routes envelopes to the packer of their media type."""

    def __init__(self, *packers: Packer):
        """Initialize the manager with a set of packers."""
        self._packers = {}
        self.register_packers(*packers)

    def register_packers(self, *packers: Packer):
        """
        Register packers by media type.

        Raises:
            PackerError: If a media type already has a packer

        """
        for packer in packers:
            if packer.media_type in self._packers:
                raise PackerError(
                    f"packer for media type '{packer.media_type}' already registered"
                )
            self._packers[packer.media_type] = packer

    @property
    def media_types(self) -> Tuple[str, ...]:
        """Media types with a registered packer."""
        return tuple(self._packers)

    def get_packer(self, media_type: str) -> Packer:
        """Return the packer for a media type."""
        packer = self._packers.get(media_type)
        if packer is None:
            raise PackerError(f"unsupported media type '{media_type}'")
        return packer

    @staticmethod
    def get_media_type(envelope: bytes) -> str:
        """
        Read the media type of an envelope.

        Plain messages are JSON objects with a `typ` member, tokens declare
        `typ` in their base64url header.
        """
        envelope = envelope.strip()
        if not envelope:
            raise PackerError("empty envelope")
        try:
            if envelope.startswith(b"{"):
                header = json.loads(envelope)
            else:
                header = json.loads(
                    b64_to_bytes(envelope.split(b".", 1)[0].decode("ascii"), True)
                )
        except ValueError as err:
            raise PackerError("failed to read envelope media type") from err
        if not isinstance(header, dict):
            raise PackerError("envelope header must be a JSON object")
        return header.get("typ") or ""

    async def unpack(self, envelope: bytes) -> Tuple[BasicMessage, str]:
        """Unpack an envelope with the packer matching its media type."""
        media_type = self.get_media_type(envelope)
        message = await self.get_packer(media_type).unpack(envelope.strip())
        LOGGER.debug("Unpacked message %s as %s", message.id, media_type)
        return message, media_type

    async def pack(self, media_type: str, payload: bytes, **params) -> bytes:
        """Pack a serialized message with the packer of a media type."""
        return await self.get_packer(media_type).pack(payload, **params)
