"""
=============================================================================
HTTP RESPONSE
=============================================================================

An HTTPResponse is built fresh for every request, filled in by the handler
(status, maybe a body), decorated by the response pipeline (Date, Server,
framing, Connection) and finally serialized by to_bytes().

    Handler sets            Pipeline adds             to_bytes()
    ─────────────           ─────────────             ──────────
    status=200              Date: ...                 HTTP/1.1 200 OK\r\n
    body=None               Server: HttpCap/1.1       Date: ...\r\n
                            Content-Length: 0         Server: HttpCap/1.1\r\n
                            Connection: keep-alive    Content-Length: 0\r\n
                                                      Connection: keep-alive\r\n
                                                      \r\n

to_bytes() adds NOTHING on its own: every header on the wire was put there
by the handler or a decorator.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Header names keep the case they were set with, but every lookup is
    case-insensitive, so set_header("content-length", ...) replaces an
    existing "Content-Length".

    Attributes:
        status: Status code (enum).
        headers: Header name → value, in insertion order.
        body: Body bytes, or None for no body at all.
        chunked: Send the body with chunked transfer coding.
        version: Protocol version for the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    chunked: bool = False
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    # =========================================================================
    # HEADERS
    # =========================================================================

    def _find(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for existing in self.headers:
            if existing.lower() == wanted:
                return existing
        return None

    def has_header(self, name: str) -> bool:
        return self._find(name) is not None

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        existing = self._find(name)
        return self.headers[existing] if existing is not None else default

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Set a header, replacing any header with the same name.

        Returns self for method chaining:
            response.set_header("X-One", "1").set_header("X-Two", "2")
        """
        existing = self._find(name)
        if existing is not None:
            del self.headers[existing]
        self.headers[name] = value
        return self

    def add_header_if_absent(self, name: str, value: str) -> "HTTPResponse":
        if not self.has_header(name):
            self.headers[name] = value
        return self

    def remove_header(self, name: str) -> "HTTPResponse":
        existing = self._find(name)
        if existing is not None:
            del self.headers[existing]
        return self

    # =========================================================================
    # BODY
    # =========================================================================

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body; strings are encoded as UTF-8."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    @property
    def keep_alive(self) -> bool:
        """False once the pipeline decided "Connection: close"."""
        connection = self.get_header("Connection", "")
        return "close" not in connection.lower()

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_bytes(self, include_body: bool = True) -> bytes:
        """
        Serialize the response for socket.sendall().

        Args:
            include_body: False for responses to HEAD, where the framing
                          headers describe a body that is not sent.

        Returns:
            Status line, headers, blank line and (maybe) the body.
        """
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        # Header octets are ISO-8859-1 on the wire
        head = "\r\n".join(lines).encode("latin-1") + b"\r\n"

        if not include_body or not self.status.allows_body:
            return head

        body = self.body or b""
        if self.is_chunked:
            return head + encode_chunked(body)
        return head + body

    @property
    def is_chunked(self) -> bool:
        encoding = self.get_header("Transfer-Encoding", "")
        return "chunked" in encoding.lower()


def encode_chunked(body: bytes) -> bytes:
    """
    Encode a body with chunked transfer coding (RFC 7230 section 4.1).

        5\r\n
        hello\r\n
        0\r\n
        \r\n

    The whole body goes in a single chunk followed by the last-chunk.
    """
    if not body:
        return b"0\r\n\r\n"
    return f"{len(body):x}\r\n".encode("ascii") + body + b"\r\n0\r\n\r\n"


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231 IMF-fixdate).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always GMT. Aware datetimes are converted first.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def interim_continue() -> bytes:
    """The bytes of a "100 Continue" interim response."""
    return HTTPResponse(status=HTTPStatus.CONTINUE).to_bytes()
