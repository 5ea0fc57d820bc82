"""Configuration driven HTTP data provider."""

import asyncio
import json
import logging

from datetime import timedelta
from typing import Any, Mapping, NamedTuple

import yaml
from aiohttp import ClientError, ClientSession

from .error import DataProviderError, ResponseSchemaError
from .extractor import extract_fields
from .models import RESPONSE_TYPE_JSON, RESPONSE_TYPE_YAML, ProviderConfig
from .placeholder import resolve_url

LOGGER = logging.getLogger(__name__)


class ProviderRequest(NamedTuple):
    """Fully resolved outbound provider request."""

    method: str
    url: str
    headers: dict


class FlexibleHTTP:
    """Data provider bound to a client session."""

    def __init__(
        self, credential_type: str, config: ProviderConfig, session: ClientSession
    ):
        """
        Initialize a FlexibleHTTP provider.

        Args:
            credential_type: the credential type identifier this provider serves
            config: the provider configuration
            session: the shared client session used for outbound calls

        """
        self.credential_type = credential_type
        self.config = config
        self.session = session

    @property
    def time_expiration(self) -> timedelta:
        """Accessor for how long refreshed credentials stay valid."""
        return self.config.settings.time_expiration

    def build_request(self, subject: Mapping[str, Any]) -> ProviderRequest:
        """
        Build the outbound request for a credential subject.

        Raises:
            RequestSchemaError: If a placeholder cannot be resolved

        """
        url = resolve_url(
            self.config.provider.url,
            self.config.request_schema.params.items(),
            subject,
        )
        return ProviderRequest(
            method=(self.config.provider.method or "GET").upper(),
            url=url,
            headers=dict(self.config.request_schema.headers),
        )

    async def provide(self, subject: Mapping[str, Any]) -> dict:
        """Fetch fresh values for the fields of a credential subject."""
        request = self.build_request(subject)
        LOGGER.debug("Calling data provider %s %s", request.method, request.url)
        try:
            async with self.session.request(
                request.method, request.url, headers=request.headers
            ) as response:
                if response.status < 200 or response.status >= 300:
                    raise DataProviderError(
                        f"unexpected status code {response.status} "
                        f"from data provider for {self.credential_type}"
                    )
                body = await response.read()
        except asyncio.TimeoutError as err:
            raise DataProviderError(
                f"data provider for {self.credential_type} timed out"
            ) from err
        except ClientError as err:
            raise DataProviderError(
                f"data provider for {self.credential_type} is unavailable"
            ) from err
        return self.decode_response(body)

    def decode_response(self, body: bytes) -> dict:
        """
        Decode a response body and extract the updated subject fields.

        Raises:
            ResponseSchemaError: If the body cannot be decoded or mapped

        """
        response_type = self.config.response_schema.type
        try:
            if response_type == RESPONSE_TYPE_JSON:
                document = json.loads(body)
            elif response_type == RESPONSE_TYPE_YAML:
                document = yaml.safe_load(body)
            else:
                raise ResponseSchemaError(
                    f"response type is not supported {response_type}"
                )
        except (ValueError, yaml.YAMLError) as err:
            raise ResponseSchemaError(
                f"failed to decode {response_type} response"
            ) from err
        if not isinstance(document, dict):
            raise ResponseSchemaError("response is not an object")
        return extract_fields(document, self.config.response_schema.properties)
