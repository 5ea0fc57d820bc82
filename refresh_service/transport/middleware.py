"""Request middleware for the inbound transport."""

import logging
import time

from typing import Coroutine

from aiohttp import web

LOGGER = logging.getLogger(__name__)


@web.middleware
async def request_logging_middleware(request: web.BaseRequest, handler: Coroutine):
    """Log one line per inbound request with its status and response time."""
    started = time.perf_counter()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as err:
        status = err.status
        raise
    finally:
        elapsed = int((time.perf_counter() - started) * 1000)
        LOGGER.info(
            "http request %s %s from %s: %s in %d ms",
            request.method,
            request.path,
            request.remote,
            status,
            elapsed,
            extra={
                "method": request.method,
                "path": request.path,
                "remoteAddr": request.remote,
                "responseTime": f"{elapsed} ms",
                "status": status,
            },
        )
