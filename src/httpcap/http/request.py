"""
=============================================================================
HTTP REQUEST MODEL
=============================================================================

The parsed form of one HTTP request, as handed to a request handler.

    Raw bytes                  HTTPRequest                  Handler
    from socket   ──parse──►    dataclass    ──dispatch──►  CaptureHandler
       │                            │
    b"POST /x HTTP/1.1\r\n"    HTTPRequest(
    b"Content-Length: 5\r\n"     method="POST",
    b"\r\nhello"                 target="/x",
                                 version="HTTP/1.1",
                                 headers=[Header("Content-Length", "5")],
                                 entity=RequestEntity(b"hello"),
                               )

=============================================================================
BODY OR NO BODY?
=============================================================================

A request carries a body ("entity") exactly when it declares message
framing: a Content-Length or a Transfer-Encoding header (RFC 7230 section
3.3). The model makes that a tagged variant instead of a type check:

    request.entity is None          → bodiless request
    request.entity is RequestEntity → body-bearing request (maybe 0 bytes)

Headers are kept as an ORDERED LIST rather than a dict: the trace must show
them in wire order, with their original case, duplicates included.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .headers import Header, parse_elements


DEFAULT_CHARSET = "iso-8859-1"


@dataclass
class RequestEntity:
    """
    The body of a request.

    Attributes:
        content: The de-framed body bytes (chunked encoding already removed).
        content_type: Raw Content-Type header value, if any.
        chunked: True when the body arrived with chunked transfer coding.
    """

    content: bytes = b""
    content_type: Optional[str] = None
    chunked: bool = False

    @property
    def content_length(self) -> int:
        return len(self.content)

    @property
    def charset(self) -> str:
        """
        Charset named by the Content-Type header, ISO-8859-1 otherwise.

        ISO-8859-1 is the HTTP/1.1 default for text and maps every byte to
        a character, so decoding never loses data.
        """
        for element in parse_elements(self.content_type):
            param = element.get_parameter("charset")
            if param is not None and param.value:
                return param.value
        return DEFAULT_CHARSET

    def text(self) -> str:
        """Decode the body with its declared charset."""
        try:
            return self.content.decode(self.charset, errors="replace")
        except (LookupError, ValueError):
            # Unknown charset name, or a codec that cannot decode arbitrary
            # bytes ("idna", "undefined"); UnicodeError is a ValueError
            return self.content.decode(DEFAULT_CHARSET)


@dataclass
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    Attributes:
        method: Request method exactly as sent (GET, POST, ...).
        target: Request target exactly as sent ("/path?query").
        version: Protocol version string ("HTTP/1.1").
        headers: Headers in wire order.
        entity: The body, or None for a bodiless request.
        client_address: (ip, port) of the peer, for logging.
    """

    method: str
    target: str
    version: str = "HTTP/1.1"
    headers: List[Header] = field(default_factory=list)
    entity: Optional[RequestEntity] = None
    client_address: Tuple[str, int] = ("", 0)

    @property
    def request_line(self) -> str:
        """The request line without CRLF: "GET /index.html HTTP/1.1"."""
        return f"{self.method} {self.target} {self.version}"

    @property
    def has_entity(self) -> bool:
        return self.entity is not None

    @property
    def protocol_version(self) -> Tuple[int, int]:
        """Version as a comparable tuple, (1, 1) for "HTTP/1.1"."""
        try:
            major, minor = self.version.split("/", 1)[1].split(".", 1)
            return int(major), int(minor)
        except (IndexError, ValueError):
            return (1, 0)

    def get_first_header(self, name: str) -> Optional[Header]:
        """First header with this name (case-insensitive), or None."""
        wanted = name.lower()
        for header in self.headers:
            if header.name.lower() == wanted:
                return header
        return None

    def get_headers(self, name: str) -> List[Header]:
        """All headers with this name (case-insensitive), in wire order."""
        wanted = name.lower()
        return [header for header in self.headers if header.name.lower() == wanted]

    def has_header(self, name: str) -> bool:
        return self.get_first_header(name) is not None

    @property
    def connection_tokens(self) -> List[str]:
        """Lower-cased tokens of every Connection header."""
        return [
            element.name.lower()
            for header in self.get_headers("Connection")
            for element in header.elements
        ]

    @property
    def is_keep_alive(self) -> bool:
        """
        Check if the client wants the connection kept open.

        HTTP/1.1 (default: keep-alive):
            Connection: close      → close after response
            (missing)              → keep alive

        HTTP/1.0 (default: close):
            Connection: keep-alive → keep alive
            (missing)              → close after response
        """
        tokens = self.connection_tokens
        if "close" in tokens:
            return False
        if self.protocol_version >= (1, 1):
            return True
        return "keep-alive" in tokens

    @property
    def expects_continue(self) -> bool:
        """True for an HTTP/1.1 body-bearing request with "Expect: 100-continue"."""
        if not self.has_entity or self.protocol_version < (1, 1):
            return False
        expect = self.get_first_header("Expect")
        return expect is not None and expect.value.strip().lower() == "100-continue"
