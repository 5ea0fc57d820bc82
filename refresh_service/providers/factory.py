"""Registry of data providers keyed by credential type."""

import logging

from typing import Mapping, Optional

import yaml
from aiohttp import ClientSession

from ..models.base import BaseModelError
from ..utils.http import create_client_session
from .error import ProviderConfigError, ProviderNotFoundError
from .flexible_http import FlexibleHTTP
from .models import ProviderConfig

LOGGER = logging.getLogger(__name__)


class FlexibleHTTPFactory:
    """Produce data providers bound to a shared client session."""

    def __init__(
        self,
        configuration: Mapping[str, ProviderConfig],
        session: Optional[ClientSession] = None,
        timeout: float = None,
    ):
        """
        Initialize the factory.

        Args:
            configuration: provider configurations keyed by credential type
            session: the session shared by every provider; created on first use
                when not given
            timeout: total timeout of the default session, in seconds

        """
        self.configuration = dict(configuration)
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @classmethod
    def load_config(
        cls,
        path: str,
        session: Optional[ClientSession] = None,
        timeout: float = None,
    ) -> "FlexibleHTTPFactory":
        """
        Load provider configurations from a YAML file.

        Raises:
            ProviderConfigError: If the file cannot be read or is malformed

        """
        try:
            with open(path, "r", encoding="utf-8") as config_file:
                raw = yaml.safe_load(config_file)
        except OSError as err:
            raise ProviderConfigError(
                f"Cannot read provider configuration '{path}'"
            ) from err
        except yaml.YAMLError as err:
            raise ProviderConfigError(
                f"Invalid YAML in provider configuration '{path}'"
            ) from err

        if not isinstance(raw, dict):
            raise ProviderConfigError(
                f"Provider configuration '{path}' must map credential types "
                "to providers"
            )
        configuration = {}
        for credential_type, entry in raw.items():
            try:
                configuration[credential_type] = ProviderConfig.deserialize(entry)
            except BaseModelError as err:
                raise ProviderConfigError(
                    f"Invalid provider configuration for '{credential_type}'"
                ) from err
        LOGGER.info(
            "Loaded %d data provider(s) from %s", len(configuration), path
        )
        return cls(configuration, session=session, timeout=timeout)

    @property
    def session(self) -> ClientSession:
        """Accessor for the shared client session."""
        if self._session is None:
            self._session = create_client_session(timeout=self.timeout)
        return self._session

    def resolve(self, credential_type: str) -> FlexibleHTTP:
        """
        Return the provider configured for a credential type.

        Raises:
            ProviderNotFoundError: If no provider serves the credential type

        """
        config = self.configuration.get(credential_type)
        if config is None:
            raise ProviderNotFoundError(
                f"not found configuration for {credential_type}"
            )
        return FlexibleHTTP(credential_type, config, self.session)

    async def close(self):
        """Close the default session if this factory created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
