"""Mapping of service errors to HTTP statuses and error codes."""

import asyncio

from typing import NamedTuple, Tuple, Type

from ..issuer.error import CreateClaimError, GetClaimError, IssuerNotSupportedError
from ..messaging.error import (
    InvalidProtocolMessageError,
    InvalidProtocolResponseError,
)
from ..providers.error import DataProviderError, RequestSchemaError, ResponseSchemaError
from ..refresh.error import CredentialNotUpdatableError


class ErrorStatus(NamedTuple):
    """How an error kind is reported to clients and operators."""

    kind: str
    status: int
    code: int
    hint: str = None


MESSAGE_TOO_LARGE = ErrorStatus(
    "MessageTooLarge", 413, 1004, "Raise --max-message-size if the sender is trusted."
)
INTERNAL = ErrorStatus("Internal", 500, 2000)
TIMEOUT = ErrorStatus(
    "Timeout",
    504,
    2007,
    "Check the issuer node and data provider latency or raise --request-timeout.",
)

ERROR_STATUSES: Tuple[Tuple[Type[BaseException], ErrorStatus], ...] = (
    (
        InvalidProtocolMessageError,
        ErrorStatus("InvalidProtocolMessage", 400, 1001),
    ),
    (
        CredentialNotUpdatableError,
        ErrorStatus("CredentialNotUpdatable", 400, 1002),
    ),
    (
        IssuerNotSupportedError,
        ErrorStatus(
            "IssuerNotSupported",
            404,
            1003,
            "Add the issuer DID or a '*' entry to --supported-issuers.",
        ),
    ),
    (
        RequestSchemaError,
        ErrorStatus(
            "InvalidRequestSchema",
            500,
            2001,
            "Check the requestSchema placeholders in the provider configuration.",
        ),
    ),
    (
        ResponseSchemaError,
        ErrorStatus(
            "InvalidResponseSchema",
            500,
            2002,
            "Check the responseSchema paths and types in the provider configuration.",
        ),
    ),
    (
        DataProviderError,
        ErrorStatus(
            "DataProviderUnavailable",
            502,
            2003,
            "Check that the data provider is reachable from the service.",
        ),
    ),
    (
        GetClaimError,
        ErrorStatus(
            "RemoteStoreReadFailure",
            502,
            2004,
            "Check the issuer node URL and basic auth credentials.",
        ),
    ),
    (
        CreateClaimError,
        ErrorStatus(
            "RemoteStoreWriteFailure",
            502,
            2005,
            "Check the issuer node logs for the rejected credential request.",
        ),
    ),
    (
        InvalidProtocolResponseError,
        ErrorStatus("InvalidProtocolResponse", 500, 2006),
    ),
    (asyncio.TimeoutError, TIMEOUT),
)


def status_for(err: BaseException) -> ErrorStatus:
    """Return the status of the first error class the error is an instance of."""
    for error_cls, status in ERROR_STATUSES:
        if isinstance(err, error_cls):
            return status
    return INTERNAL
