"""Protocol agent: unpack, dispatch and answer inbound envelopes."""

import logging

from typing import Mapping

from ..models.base import BaseModelError
from ..refresh.service import RefreshService
from .error import (
    InvalidProtocolMessageError,
    InvalidProtocolResponseError,
    PackerError,
    UnsupportedMessageTypeError,
)
from .handlers import BaseHandler, CredentialRefreshHandler, MessageKind
from .message import BasicMessage
from .message_types import MEDIA_TYPE_PLAIN_MESSAGE
from .packers import PackageManager

LOGGER = logging.getLogger(__name__)


def verify_message_attributes(message: BasicMessage):
    """Require sender and recipient on an inbound message."""
    if not message.from_:
        raise InvalidProtocolMessageError("missing 'from' field in message")
    if not message.to:
        raise InvalidProtocolMessageError("missing 'to' field in message")


class AgentService:
    """Process inbound envelopes and produce packed responses."""

    def __init__(
        self,
        package_manager: PackageManager,
        handlers: Mapping[MessageKind, BaseHandler],
    ):
        """Initialize the agent with a handler for each supported kind."""
        self.package_manager = package_manager
        self.handlers = dict(handlers)

    @classmethod
    def for_refresh(
        cls, package_manager: PackageManager, refresh_service: RefreshService
    ) -> "AgentService":
        """Build an agent answering credential refresh messages."""
        return cls(
            package_manager,
            {MessageKind.CREDENTIAL_REFRESH: CredentialRefreshHandler(refresh_service)},
        )

    async def process(self, envelope: bytes) -> bytes:
        """
        Handle one inbound envelope.

        Returns:
            The packed response envelope

        Raises:
            InvalidProtocolMessageError: If the envelope or message is rejected
            InvalidProtocolResponseError: If the response cannot be packed

        """
        try:
            message, media_type = await self.package_manager.unpack(envelope)
        except PackerError as err:
            raise InvalidProtocolMessageError("failed to unpack message") from err
        verify_message_attributes(message)

        kind = MessageKind.from_type(message.type)
        handler = self.handlers.get(kind)
        if handler is None:
            raise UnsupportedMessageTypeError(
                f"message type '{message.type}' has no handler"
            )
        LOGGER.info(
            "Handling %s message %s from %s (%s)",
            kind.name,
            message.id,
            message.from_,
            media_type,
        )
        response = await handler.handle(message)

        try:
            payload = response.to_json().encode("utf-8")
            return await self.package_manager.pack(MEDIA_TYPE_PLAIN_MESSAGE, payload)
        except (BaseModelError, PackerError) as err:
            raise InvalidProtocolResponseError("failed to pack response") from err
