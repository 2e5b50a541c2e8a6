"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket with the API the connection
service needs: "give me the next request", "send this response", "close".

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A client that sends

    GET / HTTP/1.1\r\nHost: x\r\n\r\n

may reach us as one recv() or as many:

    recv() → "GET / HT"
    recv() → "TP/1.1\r\nHost: x\r\n\r\nGET /next HTTP/1.1\r\n..."

so bytes are fed into a per-connection RequestParser, which keeps partial
state between reads and queues every request it completes. read_request()
only touches the socket when that queue is empty.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──┐
             ▲                                    │
             └──────────── KEEP_ALIVE ◄───────────┤
                                                  │
                                   CLOSING ◄──────┘ (Connection: close)
                                      │
                                   CLOSED

Two ways out:

    close()     Orderly: FIN to the client, drain what it still sends,
                release the socket. Used after "Connection: close".

    shutdown()  Release the socket now. Called unconditionally by the
                worker when its loop ends. Idempotent, so the socket is
                released exactly once whichever path got there first.

=============================================================================
"""

import socket
import ssl
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple
import uuid

from ..errors import ConnectionClosed
from ..http.parser import RequestParser
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, interim_continue


logger = logging.getLogger(__name__)

# Upper bounds on draining unread client data in close()
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states (for logging and close bookkeeping)."""
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Waiting for / reading request bytes
    PROCESSING = "processing"  # Request parsed, handler running
    WRITING = "writing"        # Sending the response
    KEEP_ALIVE = "keep_alive"  # Response sent, waiting for next request
    CLOSING = "closing"        # Orderly close in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Owned by exactly one worker from accept to shutdown; never shared.

    Attributes:
        socket: The client socket (an ssl.SSLSocket on TLS listeners).
        address: Client's (ip, port) tuple.
        id: Short unique id used in log lines.
        state: Current lifecycle state.
        requests_handled: Requests read so far on this connection.
        buffer_size: Bytes asked from recv() at a time.
        timeout: Socket timeout in seconds, None to block forever.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = None

    _parser: RequestParser = field(init=False, repr=False)

    def __post_init__(self):
        # Accepted sockets can inherit the listener's poll timeout
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)
        self._parser = RequestParser(self.address)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def is_open(self) -> bool:
        return self.state not in (ConnectionState.CLOSING, ConnectionState.CLOSED)

    @property
    def is_encrypted(self) -> bool:
        return isinstance(self.socket, ssl.SSLSocket)

    @property
    def upgraded(self) -> bool:
        """True once the client asked to switch to another protocol."""
        return self._parser.upgraded

    # =========================================================================
    # READING
    # =========================================================================

    def handshake(self) -> None:
        """
        Complete the TLS handshake on an encrypted connection.

        Done here, on the worker thread, rather than in accept(): a client
        that botches its handshake then only costs its own connection.

        Raises:
            ssl.SSLError: If the handshake fails.
        """
        if self.is_encrypted:
            self.socket.do_handshake()
            logger.debug(f"[{self.id}] TLS handshake done ({self.socket.version()})")

    def read_request(self) -> HTTPRequest:
        """
        Read the next complete HTTP request.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    read_request() Flow                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   queued request? ──yes──► return it                             │
        │        │                                                         │
        │        no                                                        │
        │        ▼                                                         │
        │   headers in, waiting on "Expect: 100-continue"?                 │
        │        └──yes──► send "HTTP/1.1 100 Continue"                    │
        │        ▼                                                         │
        │   recv() → parser.feed() → loop                                  │
        │        │                                                         │
        │        └── b"" (EOF) ──► ConnectionClosed                        │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Returns:
            The parsed request.

        Raises:
            ConnectionClosed: If the peer closed the stream first.
            ProtocolViolation: If the bytes are not valid HTTP.
            OSError: On socket errors (including timeouts).
        """
        self.state = ConnectionState.READING

        while True:
            request = self._parser.next_request()
            if request is not None:
                self.requests_handled += 1
                self.state = ConnectionState.PROCESSING
                return request

            if self._parser.upgraded:
                raise ConnectionClosed("Connection switched protocols")

            if self._parser.take_continue():
                logger.debug(f"[{self.id}] Sending 100 Continue")
                self._send(interim_continue())

            chunk = self._recv()
            if not chunk:
                if self._parser.in_message:
                    raise ConnectionClosed("Client closed connection mid-request")
                raise ConnectionClosed("Client closed connection")

            self._parser.feed(chunk)

    def _recv(self) -> bytes:
        """
        Receive data from the socket.

        Returns:
            Received bytes, or b"" once the peer closed or reset the stream.
        """
        try:
            data = self.socket.recv(self.buffer_size)
        except ConnectionResetError:
            return b""
        self.last_activity = time.time()
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, response: HTTPResponse, include_body: bool = True) -> None:
        """
        Serialize and send a response.

        Raises:
            OSError: If the connection is lost while sending.
        """
        self.state = ConnectionState.WRITING
        self._send(response.to_bytes(include_body))
        if response.keep_alive:
            self.state = ConnectionState.KEEP_ALIVE

    def _send(self, data: bytes) -> None:
        # sendall() loops until every byte is handed to the kernel
        self.socket.sendall(data)
        self.last_activity = time.time()

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, "no more data from us"
        2. Drain: read what the client still sends, for at most
           DRAIN_TIMEOUT seconds in total and DRAIN_LIMIT bytes
        3. close(): release the file descriptor

        Draining matters: closing a socket with unread data makes the
        kernel answer with RST, which can destroy the response the client
        has not read yet.
        """
        if not self.is_open:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        # Bounded in time and bytes: a client that keeps sending must not
        # hold the worker forever
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Timeout or reset: we are closing anyway

        self._release()

    def shutdown(self) -> None:
        """Release the socket immediately. Safe to call more than once."""
        if self.state == ConnectionState.CLOSED:
            return
        self._release()

    def _release(self) -> None:
        try:
            self.socket.close()
        except OSError:
            pass
        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after {self.requests_handled} requests "
            f"({time.time() - self.created_at:.3f}s)"
        )

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False
