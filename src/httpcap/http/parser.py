"""
=============================================================================
INCREMENTAL REQUEST PARSING
=============================================================================

Byte-level HTTP/1.x parsing is done by httptools (Python bindings for
llhttp, the parser used by Node.js). This module only adapts its callback
interface to the HTTPRequest model.

=============================================================================
CALLBACK FLOW
=============================================================================

httptools is PUSH-based: we feed it whatever recv() returned, and it calls
methods on this object as it recognizes parts of the message.

    feed(b"POST /x HTTP/1.1\r\nContent-Le")
        on_message_begin()
        on_url(b"/x")
    feed(b"ngth: 5\r\n\r\nhel")
        on_header(b"Content-Length", b"5")
        on_headers_complete()         ← request line + headers known
        on_body(b"hel")
    feed(b"lo")
        on_body(b"lo")
        on_message_complete()         ← HTTPRequest queued

Because TCP does not preserve message boundaries, one feed() may complete
zero, one or several requests (pipelining). Completed requests wait in a
FIFO queue until the connection asks for them.

=============================================================================
"""

from collections import deque
from typing import Deque, List, Optional, Tuple

import httptools

from ..errors import ProtocolViolation
from .headers import Header
from .request import HTTPRequest, RequestEntity
from .status_codes import HTTPStatus


class RequestParser:
    """
    Turns a stream of bytes into a queue of HTTPRequest objects.

    One parser per connection: it carries state between feed() calls
    (partial request line, partial headers, partial body).

    Usage:
        parser = RequestParser(("127.0.0.1", 50123))
        parser.feed(data)
        request = parser.next_request()   # None until a request completes
    """

    def __init__(self, client_address: Tuple[str, int] = ("", 0)):
        self.client_address = client_address
        self._parser = httptools.HttpRequestParser(self)
        self._ready: Deque[HTTPRequest] = deque()
        self._error: Optional[ProtocolViolation] = None
        self._upgraded = False
        self._reset()

    def _reset(self):
        self._url = b""
        self._headers: List[Header] = []
        self._body: List[bytes] = []
        self._current: Optional[HTTPRequest] = None
        self._in_message = False
        self._continue_pending = False

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def feed(self, data: bytes) -> None:
        """
        Feed received bytes to the parser.

        Errors are not raised here but when the caller asks for the next
        request, so requests completed before the malformed bytes are still
        served in order.
        """
        if self._error is not None or self._upgraded:
            return

        try:
            self._parser.feed_data(data)
        except httptools.HttpParserUpgrade:
            # Upgrade / CONNECT: the bytes after the head belong to another
            # protocol, which this server does not speak.
            self._upgraded = True
            if self._current is not None:
                self.on_message_complete()
        except httptools.HttpParserInvalidMethodError as e:
            self._error = ProtocolViolation(
                f"Unsupported method: {e}", HTTPStatus.NOT_IMPLEMENTED
            )
        except httptools.HttpParserError as e:
            self._error = ProtocolViolation(f"Malformed HTTP request: {e}")

    def next_request(self) -> Optional[HTTPRequest]:
        """
        Pop the oldest completed request.

        Returns:
            The request, or None if more bytes are needed.

        Raises:
            ProtocolViolation: If the stream is malformed and every request
                               before the bad bytes has been consumed.
        """
        if self._ready:
            return self._ready.popleft()
        if self._error is not None:
            raise self._error
        return None

    def take_continue(self) -> bool:
        """
        Return True once per request that waits for "100 Continue".

        The interim response is only useful while the headers are in and
        the body is not, so the flag is cleared as soon as it is read.
        """
        pending = self._continue_pending
        self._continue_pending = False
        return pending

    @property
    def in_message(self) -> bool:
        """True while part of a request has been received but not all of it."""
        return self._in_message

    @property
    def upgraded(self) -> bool:
        """True once a request asked to switch protocols."""
        return self._upgraded

    # =========================================================================
    # HTTPTOOLS CALLBACKS
    # =========================================================================

    def on_message_begin(self):
        self._in_message = True

    def on_url(self, url: bytes):
        # May arrive in several pieces when the request line is split
        self._url += url

    def on_header(self, name: bytes, value: bytes):
        # RFC 7230: header octets are ISO-8859-1; latin-1 never fails
        self._headers.append(Header(name.decode("latin-1"), value.decode("latin-1")))

    def on_headers_complete(self):
        request = HTTPRequest(
            method=self._parser.get_method().decode("latin-1"),
            target=self._url.decode("latin-1"),
            version=f"HTTP/{self._parser.get_http_version()}",
            headers=self._headers,
            client_address=self.client_address,
        )

        transfer_encoding = request.get_first_header("Transfer-Encoding")
        if transfer_encoding is not None or request.has_header("Content-Length"):
            content_type = request.get_first_header("Content-Type")
            request.entity = RequestEntity(
                content_type=content_type.value if content_type else None,
                chunked=(transfer_encoding is not None
                         and "chunked" in transfer_encoding.value.lower()),
            )

        self._current = request
        self._continue_pending = request.expects_continue

    def on_body(self, body: bytes):
        self._body.append(body)

    def on_message_complete(self):
        request = self._current
        if request.entity is not None:
            request.entity.content = b"".join(self._body)
        self._ready.append(request)
        self._reset()
