"""Client for the issuer node credential API."""

import asyncio
import logging

from typing import Optional

from aiohttp import ClientError, ClientSession

from ..credentials.models import CredentialRequest, W3CCredential
from ..models.base import BaseModelError
from ..utils.http import create_client_session
from .error import CreateClaimError, GetClaimError
from .registry import IssuerRegistry

LOGGER = logging.getLogger(__name__)


class IssuerService:
    """Read and create credentials on issuer nodes."""

    def __init__(
        self,
        registry: IssuerRegistry,
        session: Optional[ClientSession] = None,
        timeout: float = None,
    ):
        """
        Initialize the issuer service.

        Args:
            registry: issuer node URLs and credentials
            session: client session to use; created on first use when not given
            timeout: total timeout of the default session, in seconds

        """
        self.registry = registry
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> ClientSession:
        """Accessor for the client session."""
        if self._session is None:
            self._session = create_client_session(timeout=self.timeout)
        return self._session

    def _node_url(self, issuer_did: str) -> str:
        url = self.registry.base_url(issuer_did)
        LOGGER.info("use issuer node '%s' for issuer '%s'", url, issuer_did)
        return url

    async def get_claim_by_id(self, issuer_did: str, claim_id: str) -> W3CCredential:
        """
        Fetch a credential from the issuer node.

        Raises:
            IssuerNotSupportedError: If the issuer has no registered node
            GetClaimError: If the node call fails or returns an invalid credential

        """
        url = f"{self._node_url(issuer_did)}/v1/{issuer_did}/claims/{claim_id}"
        try:
            async with self.session.get(
                url, auth=self.registry.auth(issuer_did)
            ) as response:
                if response.status != 200:
                    raise GetClaimError(
                        f"failed to get claim '{claim_id}': "
                        f"invalid status code: '{response.status}'"
                    )
                body = await response.text()
        except (ClientError, asyncio.TimeoutError) as err:
            raise GetClaimError(
                f"failed to get claim '{claim_id}': failed http GET request"
            ) from err

        try:
            return W3CCredential.from_json(body)
        except BaseModelError as err:
            raise GetClaimError(
                f"failed to get claim '{claim_id}': failed to decode response"
            ) from err

    async def create_credential(
        self, issuer_did: str, request: CredentialRequest
    ) -> str:
        """
        Create a credential on the issuer node and return its id.

        Raises:
            IssuerNotSupportedError: If the issuer has no registered node
            CreateClaimError: If the node call fails or returns no id

        """
        url = f"{self._node_url(issuer_did)}/v1/{issuer_did}/claims"
        try:
            payload = request.serialize()
        except BaseModelError as err:
            raise CreateClaimError(
                "failed to create claim: credential request serialization error"
            ) from err

        try:
            async with self.session.post(
                url, json=payload, auth=self.registry.auth(issuer_did)
            ) as response:
                if response.status != 201:
                    raise CreateClaimError(
                        "failed to create claim: "
                        f"invalid status code: '{response.status}'"
                    )
                body = await response.json(content_type=None)
        except (ClientError, asyncio.TimeoutError) as err:
            raise CreateClaimError(
                "failed to create claim: failed http POST request"
            ) from err
        except ValueError as err:
            raise CreateClaimError(
                "failed to create claim: failed to decode response"
            ) from err

        claim_id = body.get("id") if isinstance(body, dict) else None
        if not claim_id or not isinstance(claim_id, str):
            raise CreateClaimError("failed to create claim: response has no id")
        return claim_id

    async def close(self):
        """Close the default session if this service created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
