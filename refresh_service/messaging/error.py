"""Messaging-related error classes."""

from ..core.error import BaseError


class MessagingError(BaseError):
    """Base class for messaging errors."""


class InvalidProtocolMessageError(MessagingError):
    """The inbound message could not be accepted."""


class UnsupportedMessageTypeError(InvalidProtocolMessageError):
    """The inbound message has a type no handler is registered for."""


class InvalidProtocolResponseError(MessagingError):
    """The outbound response could not be built."""


class PackerError(MessagingError):
    """An envelope could not be packed or unpacked."""
