"""Issuer node lookup."""

import logging

from typing import Mapping, Optional

from aiohttp import BasicAuth

from .error import IssuerConfigError, IssuerNotSupportedError

LOGGER = logging.getLogger(__name__)

WILDCARD = "*"


def parse_basic_auth(name_password: str) -> BasicAuth:
    """
    Parse a `username:password` pair.

    Raises:
        IssuerConfigError: If the value does not contain exactly one `:`

    """
    pair = name_password.split(":")
    if len(pair) != 2:
        raise IssuerConfigError(f"invalid basic auth: {name_password!r}")
    return BasicAuth(pair[0], pair[1])


class IssuerRegistry:
    """Issuer node base URLs and basic auth credentials keyed by issuer DID.

    A `*` entry in either mapping is used for issuers without their own entry.
    """

    def __init__(
        self,
        urls: Mapping[str, str],
        basic_auth: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the registry.

        Raises:
            IssuerConfigError: If a basic auth entry is malformed

        """
        self.urls = {did: url.rstrip("/") for did, url in urls.items()}
        self.basic_auth = {
            did: parse_basic_auth(value) for did, value in (basic_auth or {}).items()
        }

    def base_url(self, issuer_did: str) -> str:
        """
        Return the issuer node base URL for an issuer.

        Raises:
            IssuerNotSupportedError: If neither the issuer nor `*` is registered

        """
        url = self.urls.get(issuer_did) or self.urls.get(WILDCARD)
        if not url:
            raise IssuerNotSupportedError(f"issuer is not supported: id '{issuer_did}'")
        return url

    def auth(self, issuer_did: str) -> Optional[BasicAuth]:
        """Return the basic auth credentials for an issuer, if any."""
        auth = self.basic_auth.get(issuer_did) or self.basic_auth.get(WILDCARD)
        if auth is None and self.basic_auth:
            LOGGER.warning("issuer '%s' not found in basic auth map", issuer_did)
        return auth
