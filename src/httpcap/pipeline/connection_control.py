"""
Connection persistence decorator.

=============================================================================
KEEP-ALIVE OR CLOSE?
=============================================================================

The decision, in order:

    1. Status 400, 408, 411, 413, 414, 501 or 503
       └── close: the request stream may be out of sync, or the
           server wants the client gone

    2. The handler already said "Connection: close"
       └── close: keep the handler's decision

    3. No request (the bytes never parsed into one)
       └── close

    4. The request's own keep-alive semantics
       ├── HTTP/1.1: keep-alive unless "Connection: close"
       └── HTTP/1.0: close unless "Connection: keep-alive"

The header is always set explicitly, so a client never has to guess, and
the connection service reads the same header to decide whether to read
another request from the socket.

=============================================================================
"""

from typing import Optional

from .base import ResponseDecorator
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


CLOSE = "close"
KEEP_ALIVE = "keep-alive"

_CLOSING_STATUSES = frozenset({
    HTTPStatus.BAD_REQUEST,
    HTTPStatus.REQUEST_TIMEOUT,
    HTTPStatus.LENGTH_REQUIRED,
    HTTPStatus.PAYLOAD_TOO_LARGE,
    HTTPStatus.URI_TOO_LONG,
    HTTPStatus.NOT_IMPLEMENTED,
    HTTPStatus.SERVICE_UNAVAILABLE,
})


class ConnectionControlDecorator(ResponseDecorator):
    """Sets "Connection: keep-alive" or "Connection: close"."""

    def decorate(self, response: HTTPResponse, request: Optional[HTTPRequest]) -> None:
        if response.status in _CLOSING_STATUSES:
            response.set_header("Connection", CLOSE)
            return

        explicit = response.get_header("Connection")
        if explicit is not None and explicit.strip().lower() == CLOSE:
            return

        if request is None or not request.is_keep_alive:
            response.set_header("Connection", CLOSE)
        else:
            response.set_header("Connection", KEEP_ALIVE)
