"""
pytest configuration and fixtures.
"""

import socket
from dataclasses import dataclass, field
from typing import Dict, Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpcap import HttpCapServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8888\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html, application/xml;q=0.9\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a text body."""
    return (
        b"POST /submit HTTP/1.1\r\n"
        b"Host: localhost:8888\r\n"
        b"Content-Type: text/plain\r\n"
        b"Content-Length: 5\r\n"
        b"\r\n"
        b"hello"
    )


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration on an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@dataclass
class RawResponse:
    """A response as read off the socket. Header names are lower-cased."""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class RawClient:
    """
    Minimal socket client for talking to the server byte by byte.

    read_response() understands Content-Length framing only, which is all
    the capture server ever sends.
    """

    def __init__(self, address: Tuple[str, int], timeout: float = 5.0):
        self.sock = socket.create_connection(address, timeout=timeout)
        self._buffer = b""

    def send(self, data: bytes) -> None:
        self.sock.sendall(data)

    def _fill(self) -> bool:
        try:
            chunk = self.sock.recv(4096)
        except ConnectionResetError:
            return False
        if not chunk:
            return False
        self._buffer += chunk
        return True

    def read_response(self) -> RawResponse:
        while b"\r\n\r\n" not in self._buffer:
            if not self._fill():
                raise ConnectionError("Server closed before sending a response")

        head, self._buffer = self._buffer.split(b"\r\n\r\n", 1)
        lines = head.decode("latin-1").split("\r\n")
        _, status, _ = lines[0].split(" ", 2)

        headers = {}
        for line in lines[1:]:
            name, value = line.split(":", 1)
            headers[name.strip().lower()] = value.strip()

        length = int(headers.get("content-length", "0"))
        while len(self._buffer) < length:
            if not self._fill():
                break
        body, self._buffer = self._buffer[:length], self._buffer[length:]
        return RawResponse(int(status), headers, body)

    def server_closed(self) -> bool:
        """True once the server has closed its end (EOF or reset)."""
        if self._buffer:
            return False
        try:
            return self.sock.recv(1) == b""
        except ConnectionResetError:
            return True

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "RawClient":
        return self

    def __exit__(self, *exc):
        self.close()
        return False


@pytest.fixture
def server(config: ServerConfig) -> Generator[HttpCapServer, None, None]:
    """A running capture server on 127.0.0.1 and a free port."""
    srv = HttpCapServer(config).start()
    yield srv
    srv.stop()


@pytest.fixture
def client(server: HttpCapServer):
    """Factory for raw clients connected to the running server."""
    clients = []

    def connect() -> RawClient:
        raw = RawClient(server.address)
        clients.append(raw)
        return raw

    yield connect

    for raw in clients:
        raw.close()
