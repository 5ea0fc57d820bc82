"""Handlers for the supported protocol message kinds."""

import logging

from abc import ABC, abstractmethod
from enum import Enum
from uuid import uuid4

from ..models.base import BaseModelError
from ..refresh.service import RefreshService
from .error import InvalidProtocolMessageError, UnsupportedMessageTypeError
from .message import BasicMessage, CredentialRefreshBody
from .message_types import (
    CREDENTIAL_ISSUANCE_RESPONSE,
    CREDENTIAL_REFRESH,
    MEDIA_TYPE_PLAIN_MESSAGE,
)

LOGGER = logging.getLogger(__name__)

URN_UUID_PREFIX = "urn:uuid:"


class MessageKind(Enum):
    """Message types the service answers."""

    CREDENTIAL_REFRESH = CREDENTIAL_REFRESH

    @classmethod
    def from_type(cls, message_type: str) -> "MessageKind":
        """
        Resolve the kind of a message type.

        Raises:
            UnsupportedMessageTypeError: If the type is not handled

        """
        for kind in cls:
            if kind.value == message_type:
                return kind
        raise UnsupportedMessageTypeError(f"unknown message type '{message_type}'")


def convert_id(credential_id: str) -> str:
    """Reduce a `urn:uuid:` id or a credential URL to the bare credential id."""
    if credential_id.startswith(URN_UUID_PREFIX):
        return credential_id[len(URN_UUID_PREFIX) :]
    return credential_id.rsplit("/", 1)[-1]


class BaseHandler(ABC):
    """Abstract base class for message handlers."""

    @abstractmethod
    async def handle(self, message: BasicMessage) -> BasicMessage:
        """
        Handle a message.

        Args:
            message: the unpacked inbound message

        Returns:
            The response message

        """


class CredentialRefreshHandler(BaseHandler):
    """Refresh the requested credentials and answer with an issuance response."""

    def __init__(self, refresh_service: RefreshService):
        """Initialize the handler."""
        self.refresh_service = refresh_service

    async def handle(self, message: BasicMessage) -> BasicMessage:
        """Refresh the credential referenced by a refresh message."""
        try:
            body = CredentialRefreshBody.deserialize(message.body or {})
        except BaseModelError as err:
            raise InvalidProtocolMessageError(
                "failed to parse credential refresh body"
            ) from err

        # the issuance response body carries a single credential
        if len(body.credential_ids) != 1:
            raise InvalidProtocolMessageError(
                "credential refresh message must reference exactly one credential, "
                f"got {len(body.credential_ids)}"
            )
        credential_id = convert_id(body.credential_ids[0])
        LOGGER.debug("Refreshing credential %s for %s", credential_id, message.from_)
        credential = await self.refresh_service.process(
            message.to, message.from_, credential_id
        )

        return BasicMessage(
            id=str(uuid4()),
            typ=MEDIA_TYPE_PLAIN_MESSAGE,
            type=CREDENTIAL_ISSUANCE_RESPONSE,
            thid=message.thid,
            body={"credential": credential.serialize()},
            from_=message.to,
            to=message.from_,
        )
