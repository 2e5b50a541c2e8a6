"""
=============================================================================
CONNECTION SERVICE
=============================================================================

One request/response cycle on a connection:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      handle_one(connection)                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. connection.read_request()                                       │
    │          ├── ConnectionClosed   → propagate (worker ends)           │
    │          └── ProtocolViolation  → send 400, close, re-raise         │
    │                                                                      │
    │   2. registry.lookup(request)                                        │
    │          ├── None               → 501 Not Implemented               │
    │          └── handler(request)   → response                          │
    │                 └── raises      → 500 Internal Server Error         │
    │                                                                      │
    │   3. pipeline.process(response, request)                             │
    │          Date, Server, framing, Connection                           │
    │                                                                      │
    │   4. connection.send_response(response, include_body=not HEAD)       │
    │                                                                      │
    │   5. "Connection: close" or protocol upgrade → connection.close()   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The service holds only the registry and the pipeline, both built before
the server starts and never modified afterwards, so one instance is shared
by every worker without locking.

=============================================================================
"""

import logging
from typing import Optional

from .core.connection import Connection
from .errors import ProtocolViolation
from .http.registry import HandlerRegistry
from .http.request import HTTPRequest
from .http.response import HTTPResponse
from .http.status_codes import HTTPStatus
from .pipeline import ResponsePipeline


logger = logging.getLogger(__name__)


class ConnectionService:
    """
    Reads a request, dispatches it, decorates and writes the response.

    Args:
        registry: Maps request URIs to handlers.
        pipeline: Decorators applied to every response, errors included.
    """

    def __init__(self, registry: HandlerRegistry, pipeline: ResponsePipeline):
        self.registry = registry
        self.pipeline = pipeline

    def handle_one(self, conn: Connection) -> None:
        """
        Serve exactly one request on the connection.

        Raises:
            ConnectionClosed: The client closed before sending a request.
            ProtocolViolation: The request was malformed (a 400 was sent).
            OSError: Reading or writing the socket failed.
        """
        try:
            request = conn.read_request()
        except ProtocolViolation as e:
            self._send_error(conn, e)
            raise

        response = self._dispatch(request)
        self.pipeline.process(response, request)

        conn.send_response(response, include_body=request.method != "HEAD")
        logger.debug(
            f"[{conn.id}] {request.method} {request.target} → {int(response.status)}"
        )

        if not response.keep_alive or conn.upgraded:
            conn.close()

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        handler = self.registry.lookup(request)
        if handler is None:
            logger.warning(f"No handler for {request.method} {request.target}")
            return self.error_response(
                HTTPStatus.NOT_IMPLEMENTED,
                f"No handler for {request.target}",
            )

        try:
            return handler(request)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.target}: {e}")
            return self.error_response(HTTPStatus.INTERNAL_SERVER_ERROR)

    def _send_error(self, conn: Connection, error: ProtocolViolation) -> None:
        """
        Best effort: answer a malformed request, then close.

        The client may be gone already; failing to deliver the error is
        not worth more than a debug line.
        """
        try:
            status = HTTPStatus(error.status_code)
        except ValueError:
            status = HTTPStatus.BAD_REQUEST

        response = self.error_response(status, str(error))
        self.pipeline.process(response, None)

        try:
            conn.send_response(response)
        except OSError as e:
            logger.debug(f"[{conn.id}] Could not send {int(status)} response: {e}")
        conn.close()

    @staticmethod
    def error_response(status: HTTPStatus, message: Optional[str] = None) -> HTTPResponse:
        """Plain-text error response: "<code> <phrase>" plus optional detail."""
        text = f"{int(status)} {status.phrase}"
        if message:
            text = f"{text}: {message}"
        response = HTTPResponse(status=status)
        response.set_header("Content-Type", "text/plain; charset=utf-8")
        response.set_body(text + "\n")
        return response
