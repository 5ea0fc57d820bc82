"""Inbound HTTP transport for protocol envelopes."""

import asyncio
import logging

from aiohttp import web

from ..core.error import BaseError, StartupError
from ..messaging.agent import AgentService
from .middleware import request_logging_middleware
from .statuses import INTERNAL, MESSAGE_TOO_LARGE, ErrorStatus, status_for

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGE_SIZE = 1 << 20


class HttpTransport:
    """Accept packed messages on `POST /` and answer with packed responses."""

    def __init__(
        self,
        host: str,
        port: int,
        agent: AgentService,
        *,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
        request_timeout: float = None,
    ):
        """
        Initialize an inbound HTTP transport instance.

        Args:
            host: Host to listen on
            port: Port to listen on
            agent: Processes each inbound envelope
            max_message_size: Largest accepted request body in bytes
            request_timeout: Deadline in seconds for processing one envelope

        """
        self.host = host
        self.port = port
        self.agent = agent
        self.max_message_size = max_message_size
        self.request_timeout = request_timeout
        self.site: web.BaseSite = None

    async def make_application(self) -> web.Application:
        """Construct the aiohttp application."""
        app_args = {"middlewares": [request_logging_middleware]}
        if self.max_message_size:
            app_args["client_max_size"] = self.max_message_size
        app = web.Application(**app_args)
        app.add_routes([web.post("/", self.inbound_message_handler)])
        return app

    async def start(self) -> None:
        """
        Start this transport.

        Raises:
            StartupError: If there was an error starting the webserver

        """
        app = await self.make_application()
        runner = web.AppRunner(app)
        await runner.setup()
        self.site = web.TCPSite(runner, host=self.host, port=self.port)
        try:
            await self.site.start()
        except OSError as err:
            raise StartupError(
                "Unable to start webserver with host "
                + f"'{self.host}' and port '{self.port}'\n"
            ) from err
        LOGGER.info("Listening on %s:%s", self.host, self.port)

    async def stop(self) -> None:
        """Stop this transport."""
        if self.site:
            await self.site.stop()
            self.site = None

    async def inbound_message_handler(self, request: web.BaseRequest):
        """
        Message handler for inbound envelopes.

        Args:
            request: aiohttp request object

        Returns:
            The web response

        """
        try:
            body = await request.read()
        except web.HTTPRequestEntityTooLarge:
            return self.error_response(
                MESSAGE_TOO_LARGE,
                f"message is larger than {self.max_message_size} bytes",
            )

        try:
            envelope = await asyncio.wait_for(
                self.agent.process(body), self.request_timeout
            )
        except Exception as err:
            return self.handle_error(err)

        return web.Response(body=envelope, status=200, content_type="application/json")

    def handle_error(self, err: Exception) -> web.Response:
        """Log a processing failure and build its error response."""
        status = status_for(err)
        if status is INTERNAL:
            LOGGER.exception("Unexpected error processing message")
            return self.error_response(status, "internal server error")

        if isinstance(err, BaseError):
            message = err.roll_up
        else:
            message = "request timed out"
        LOGGER.warning(
            "%s: %s%s",
            status.kind,
            message,
            f" Hint: {status.hint}" if status.hint else "",
        )
        return self.error_response(status, message)

    @staticmethod
    def error_response(status: ErrorStatus, message: str) -> web.Response:
        """Build a JSON error body."""
        return web.json_response(
            {"code": status.code, "error": message}, status=status.status
        )
