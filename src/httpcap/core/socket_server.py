"""
=============================================================================
CONNECTION ACCEPTOR
=============================================================================

Owns the listening socket. Think of it as the "ears" of the server: it
accepts connections and hands each one to its own worker thread, then
forgets about it.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create the TCP socket
    2. bind()      Reserve host:port          ─┐
    3. listen()    Start queueing connections  ├─ failure → StartupError
    4. wrap        TLS context (encrypted only)─┘
    5. accept()    One new socket per client, in a loop on its own thread

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once in start()
                    └───────────┬───────────┘
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Worker 1  │         │ Worker 2  │         │ Worker 3  │
    └───────────┘         └───────────┘         └───────────┘
    Fire and forget: the acceptor never joins, counts or tracks workers.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR:
    Lets a restarted server bind while old connections sit in TIME_WAIT.
    It does NOT let two servers listen on the same port at once, so a
    port already in use still fails at bind() with StartupError.

TCP_NODELAY:
    Disables Nagle's algorithm. Responses here are tiny; we want them on
    the wire immediately.

=============================================================================
TLS
=============================================================================

The listening socket is wrapped with do_handshake_on_connect=False. The
acceptor only accepts; the handshake runs on the worker thread (see
Connection.handshake), so a client that stalls or botches its handshake
never blocks or kills the accept loop.

=============================================================================
"""

import socket
import logging
import threading
from typing import Optional, Tuple

from ..config import ServerConfig
from ..errors import StartupError
from .connection import Connection
from .worker import ConnectionWorker


logger = logging.getLogger(__name__)


class ConnectionAcceptor:
    """
    Accepts TCP (or TLS) connections and starts a worker per connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ConnectionAcceptor Internals                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start()           Bind, listen, start the accept thread, return   │
    │        │                                                             │
    │        ├──► _create_socket()   socket() + setsockopt()               │
    │        ├──► bind() / listen()  OSError → StartupError                │
    │        ├──► wrap_socket()      encrypted transport only              │
    │        │                                                             │
    │        └──► Thread(_accept_loop)  non-daemon, keeps process alive    │
    │                 │                                                    │
    │                 └──► while running:                                  │
    │                         accept()                                     │
    │                         Connection(...)                              │
    │                         ConnectionWorker(conn, service).start()      │
    │                                                                      │
    │    stop()            running = False, wait for the loop to exit      │
    │                                                                      │
    │    _cleanup()        Close the listening socket                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        acceptor = ConnectionAcceptor(config, service).start()
        ...
        acceptor.stop()
    """

    def __init__(self, config: ServerConfig, service):
        """
        Initialize the acceptor.

        Args:
            config: Host, port, transport and socket settings.
            service: Shared ConnectionService; every worker uses it.

        Note: Nothing is bound until start().
        """
        self.config = config
        self.service = service

        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port). Reports the real port when started on port 0."""
        if self._socket is not None:
            try:
                host, port = self._socket.getsockname()[:2]
                return (host, port)
            except OSError:
                pass  # Already closed
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Poll timeout on accept() so the loop notices stop()
        sock.settimeout(1.0)
        return sock

    def start(self) -> "ConnectionAcceptor":
        """
        Bind, listen and start accepting on a background thread.

        Returns:
            self, once the socket is listening.

        Raises:
            StartupError: If the address cannot be bound or the TLS
                          material cannot be loaded.
        """
        if self._running:
            raise StartupError("Acceptor already started")

        sock = self._create_socket()
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise StartupError(
                f"Cannot listen on {self.config.host}:{self.config.port}: {e}"
            ) from e

        if self.config.is_encrypted:
            try:
                context = self.config.create_ssl_context()
            except StartupError:
                sock.close()
                raise
            sock = context.wrap_socket(
                sock,
                server_side=True,
                do_handshake_on_connect=False,
            )

        self._socket = sock
        self._running = True

        self._thread = threading.Thread(
            target=self._accept_loop,
            name="httpcap-acceptor",
            daemon=False,
        )
        self._thread.start()

        host, port = self.address
        scheme = "https" if self.config.is_encrypted else "http"
        logger.info(f"Listening on {scheme}://{host}:{port}")
        return self

    def _accept_loop(self):
        """
        Accept until stop() or an accept I/O error.

        ┌─────────────────────────────────────────────────────────────────┐
        │                     Accept Loop Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while self._running:                                           │
        │       accept()                                                   │
        │         ├── socket.timeout → loop (re-check running)             │
        │         ├── OSError, stopped → exit quietly                      │
        │         └── OSError, running → log ERROR, exit                   │
        │       Connection(...) → ConnectionWorker(...).start()            │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        try:
            while self._running:
                try:
                    client_socket, client_address = self._socket.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._running:
                        logger.error(f"Accept error: {e}")
                    break

                logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    buffer_size=self.config.buffer_size,
                    timeout=self.config.timeout,
                )
                ConnectionWorker(conn, self.service).start()
        finally:
            self._running = False
            self._cleanup()

    def stop(self) -> None:
        """
        Stop accepting and release the listening socket.

        In-flight workers are left alone. Safe to call more than once and
        from any thread, including the accept thread itself.
        """
        if self._running:
            logger.info("Stopping acceptor...")
        self._running = False

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        elif thread is None:
            self._cleanup()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the accept loop exits.

        Returns:
            True if the loop has exited, False if the timeout expired.
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _cleanup(self):
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
            logger.info("Acceptor stopped")
