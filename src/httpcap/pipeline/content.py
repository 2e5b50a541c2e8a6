"""
Body framing decorator.

=============================================================================
HOW DOES THE CLIENT KNOW WHERE THE BODY ENDS?
=============================================================================

On a persistent connection the client needs explicit framing, otherwise it
cannot tell the end of this response from the start of the next one:

    ┌──────────────────────────┬─────────────────────────────────────────┐
    │ Response                 │ Framing header                          │
    ├──────────────────────────┼─────────────────────────────────────────┤
    │ body, chunked, HTTP/1.1  │ Transfer-Encoding: chunked              │
    │ body                     │ Content-Length: <len(body)>             │
    │ no body                  │ Content-Length: 0                       │
    │ no body, 204/205/304     │ (nothing: these never have a body)      │
    └──────────────────────────┴─────────────────────────────────────────┘

Framing is always computed here: whatever Content-Length or
Transfer-Encoding the handler set is dropped first, so the headers can
never disagree with the bytes actually sent.

=============================================================================
"""

from typing import Optional

from .base import ResponseDecorator
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


_BODYLESS_STATUSES = (
    HTTPStatus.NO_CONTENT,
    HTTPStatus.RESET_CONTENT,
    HTTPStatus.NOT_MODIFIED,
)


class ContentDecorator(ResponseDecorator):
    """Sets Content-Length or Transfer-Encoding from the response body."""

    def decorate(self, response: HTTPResponse, request: Optional[HTTPRequest]) -> None:
        response.remove_header("Transfer-Encoding")
        response.remove_header("Content-Length")

        if response.body is None:
            if response.status not in _BODYLESS_STATUSES and not response.status.is_informational:
                response.set_header("Content-Length", "0")
            return

        if response.chunked and _supports_chunked(response, request):
            response.set_header("Transfer-Encoding", "chunked")
        else:
            response.set_header("Content-Length", str(len(response.body)))


def _supports_chunked(response: HTTPResponse, request: Optional[HTTPRequest]) -> bool:
    # Chunked coding only exists from HTTP/1.1 on, on both ends
    if request is not None and request.protocol_version < (1, 1):
        return False
    return response.version != "HTTP/1.0"
