"""Credential refresh orchestration."""

import asyncio
import logging

from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Mapping

from ..credentials.claim import MerklizedRootPosition, merklized_position
from ..credentials.error import (
    ClaimError,
    CredentialError,
    JsonLdError,
    SerializationFieldError,
)
from ..credentials.jsonld import SchemaProcessor
from ..credentials.models import CredentialRequest, W3CCredential
from ..issuer.error import GetClaimError
from ..issuer.service import IssuerService
from ..providers.error import ProviderNotFoundError
from ..providers.factory import FlexibleHTTPFactory
from .error import (
    CredentialNotUpdatableError,
    NotUpdatableReason,
    ReissuedCredentialFetchError,
)

LOGGER = logging.getLogger(__name__)

INDEX_SLOTS = (2, 3)
SKIPPED_FIELDS = ("id", "type")


def utc_now() -> datetime:
    """Return the current time as an aware datetime."""
    return datetime.now(timezone.utc)


def is_updatable(credential: W3CCredential, now: datetime):
    """
    Check that a credential has expired and has an owner.

    Raises:
        CredentialNotUpdatableError: If the credential cannot be refreshed

    """
    expiration = credential.expiration
    if expiration is None:
        raise CredentialNotUpdatableError(
            f"credential '{credential.id}': credential has no expiration date",
            reason=NotUpdatableReason.NOT_EXPIRED,
        )
    if expiration.tzinfo is None:
        expiration = expiration.replace(tzinfo=timezone.utc)
    if expiration > now:
        raise CredentialNotUpdatableError(
            f"credential '{credential.id}': not expired",
            reason=NotUpdatableReason.NOT_EXPIRED,
        )
    if not credential.subject_id:
        raise CredentialNotUpdatableError(
            f"credential '{credential.id}': credential subject does not have an id",
            reason=NotUpdatableReason.MISSING_ID,
        )


def check_ownership(credential: W3CCredential, owner: str):
    """
    Check that the caller owns the credential.

    Raises:
        CredentialNotUpdatableError: If the subject id is not the owner

    """
    if credential.subject_id != owner:
        raise CredentialNotUpdatableError(
            f"credential '{credential.id}': not owner of the credential",
            reason=NotUpdatableReason.NOT_OWNER,
        )


def extract_revocation_nonce(credential: W3CCredential) -> int:
    """
    Return the revocation nonce of a credential.

    Raises:
        CredentialError: If the nonce is missing or not a number

    """
    status = credential.credential_status
    if not isinstance(status, dict):
        raise CredentialError("invalid credential status")
    if "revocationNonce" not in status:
        raise CredentialError("revocationNonce not found in credential status")
    nonce = status["revocationNonce"]
    if isinstance(nonce, bool) or not isinstance(nonce, (int, float)):
        raise CredentialError("revocationNonce is not a number")
    if isinstance(nonce, float) and not nonce.is_integer():
        raise CredentialError("revocationNonce is not an integer")
    if nonce < 0:
        raise CredentialError("revocationNonce is negative")
    return int(nonce)


class RefreshService:
    """Refresh expired credentials with fresh data provider values."""

    def __init__(
        self,
        issuer_service: IssuerService,
        providers: FlexibleHTTPFactory,
        schema_processor: SchemaProcessor,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the refresh service.

        Args:
            issuer_service: client for the issuer node credential API
            providers: data providers keyed by credential type
            schema_processor: JSON-LD helpers for type and slot resolution
            clock: returns the current time as an aware datetime

        """
        self.issuer_service = issuer_service
        self.providers = providers
        self.schema_processor = schema_processor
        self.clock = clock

    async def process(
        self, issuer: str, owner: str, credential_id: str
    ) -> W3CCredential:
        """
        Refresh a single credential.

        Every check runs before the re-issuance request, the only step that
        changes the issuer node.

        Returns:
            The newly issued credential

        """
        credential = await self.issuer_service.get_claim_by_id(issuer, credential_id)

        is_updatable(credential, self.clock())
        check_ownership(credential, owner)

        credential_type = await self._run_sync(
            self.schema_processor.type_id_from_context,
            credential.context,
            credential.subject_type,
        )
        try:
            provider = self.providers.resolve(credential_type)
        except ProviderNotFoundError as err:
            raise CredentialNotUpdatableError(
                f"for credential '{credential.id}' "
                "not possible to find a data provider",
                reason=NotUpdatableReason.NO_PROVIDER,
            ) from err

        updated_fields = await provider.provide(credential.credential_subject)

        try:
            changed = await self._run_sync(
                self.is_updated_index_slots,
                credential,
                credential.credential_subject,
                updated_fields,
            )
        except (ClaimError, JsonLdError) as err:
            raise CredentialNotUpdatableError(
                f"for credential '{credential.id}' index slots parsing process error",
                reason=NotUpdatableReason.NO_INDEX_CHANGE,
            ) from err
        if not changed:
            raise CredentialNotUpdatableError(
                f"for credential '{credential.id}' no index fields were updated",
                reason=NotUpdatableReason.NO_INDEX_CHANGE,
            )

        subject = dict(credential.credential_subject, **updated_fields)
        if not credential.schema_id:
            raise CredentialError(f"credential '{credential.id}' has no schema id")
        request = CredentialRequest(
            credential_schema=credential.schema_id,
            type=subject.get("type"),
            credential_subject=subject,
            expiration=int((self.clock() + provider.time_expiration).timestamp()),
            refresh_service=credential.refresh_service,
            rev_nonce=extract_revocation_nonce(credential),
        )

        refreshed_id = await self.issuer_service.create_credential(issuer, request)
        LOGGER.info("credential '%s' reissued as '%s'", credential.id, refreshed_id)
        try:
            return await self.issuer_service.get_claim_by_id(issuer, refreshed_id)
        except GetClaimError as err:
            raise ReissuedCredentialFetchError(
                f"credential '{credential.id}' was reissued as '{refreshed_id}' "
                "but the new credential could not be fetched",
                credential_id=refreshed_id,
            ) from err

    def is_updated_index_slots(
        self,
        credential: W3CCredential,
        old_values: Mapping[str, Any],
        new_values: Mapping[str, Any],
    ) -> bool:
        """
        Check whether the new values change a field stored in an index slot.

        Fields the type's serialization info does not map are skipped.
        """
        position = merklized_position(credential)
        if position is MerklizedRootPosition.INDEX:
            return True
        if position is MerklizedRootPosition.VALUE:
            return False

        type_name = credential.subject_type
        contexts = self.schema_processor.load_contexts(credential.context_urls)
        for field, old_value in old_values.items():
            if field in SKIPPED_FIELDS or field not in new_values:
                continue
            try:
                slot = self.schema_processor.field_slot_index(
                    field, type_name, contexts
                )
            except SerializationFieldError:
                LOGGER.debug("field '%s' is not serialized in the claim", field)
                continue
            if slot in INDEX_SLOTS and old_value != new_values[field]:
                return True
        return False

    @staticmethod
    async def _run_sync(func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))
