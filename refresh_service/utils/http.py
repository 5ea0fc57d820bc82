"""HTTP utility methods."""

import logging

from aiohttp import ClientSession, ClientTimeout, DummyCookieJar, TCPConnector

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def create_client_session(timeout: float = None, **kwargs) -> ClientSession:
    """
    Create a client session suitable for sharing between concurrent requests.

    Args:
        timeout: total timeout for each request made through the session, in seconds

    """
    connector = TCPConnector(limit=200, limit_per_host=50)
    session_args = {
        "cookie_jar": DummyCookieJar(),
        "connector": connector,
        "trust_env": True,
        "timeout": ClientTimeout(total=timeout or DEFAULT_TIMEOUT),
    }
    session_args.update(kwargs)
    LOGGER.debug("Creating client session with timeout %s", timeout)
    return ClientSession(**session_args)
