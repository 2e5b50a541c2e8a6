"""
=============================================================================
HTTPCAP SERVER
=============================================================================

The orchestrator that ties all components together.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       HTTPCAP ARCHITECTURE                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │  HttpCapServer  │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │  Connection  │    │  Connection  │    │   Handler    │        │
    │    │   Acceptor   │───►│   Service    │───►│   Registry   │        │
    │    └──────┬───────┘    └──────┬───────┘    │ "*" → Capture│        │
    │           │                   │            └──────────────┘        │
    │           ▼                   ▼                                     │
    │    ┌──────────────┐    ┌──────────────────────────────────┐        │
    │    │   Worker     │    │        Response Pipeline          │        │
    │    │ (per conn.)  │    │  Date → Server → Content → Conn. │        │
    │    └──────────────┘    └──────────────────────────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Everything below the acceptor is built once, before the first connection,
and only read afterwards.

=============================================================================
LOGGING
=============================================================================

Two streams:

    httpcap.*        Diagnostics, "%(asctime)s [%(levelname)s] ..." on stderr
    httpcap.trace    Request traces, bare "%(message)s" on stdout, not
                     propagated, so a trace reads exactly as captured

=============================================================================
"""

import logging
import signal
import sys
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .core.socket_server import ConnectionAcceptor
from .handlers.capture import CaptureHandler, trace_logger
from .http.registry import HandlerRegistry
from .pipeline import standard_pipeline
from .service import ConnectionService


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure diagnostic logging and route request traces to stdout."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpcap").setLevel(numeric_level)

    if not trace_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        trace_logger.addHandler(handler)
    trace_logger.setLevel(logging.INFO)
    trace_logger.propagate = False


class HttpCapServer:
    """
    The capture server: every request is traced and answered with 200 OK.

    Usage:
        server = HttpCapServer(ServerConfig(port=8888))
        server.serve_forever()          # blocks until SIGINT / SIGTERM

    Or, embedded (tests do this):
        server = HttpCapServer(ServerConfig(host="127.0.0.1", port=0)).start()
        host, port = server.address
        ...
        server.stop()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast on invalid config

        self.registry = HandlerRegistry()
        self.registry.register("*", CaptureHandler().handle)

        self.pipeline = standard_pipeline(self.config.server_name)
        self.service = ConnectionService(self.registry, self.pipeline)
        self._acceptor = ConnectionAcceptor(self.config, self.service)

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        return self._acceptor.address

    @property
    def is_running(self) -> bool:
        return self._acceptor.is_running

    def start(self) -> "HttpCapServer":
        """
        Bind and start accepting in the background.

        Raises:
            StartupError: If the socket cannot be bound or TLS set up.
        """
        self._acceptor.start()
        return self

    def stop(self) -> None:
        self._acceptor.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._acceptor.wait(timeout)

    def serve_forever(self) -> None:
        """
        Start the server and block until SIGINT or SIGTERM.

        Raises:
            StartupError: If the server cannot start.
        """
        self.start()
        self._setup_signals()
        try:
            while not self._acceptor.wait(0.5):
                pass
        finally:
            self._restore_signals()
            self.stop()
        logger.info("Server stopped")

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _setup_signals(self):
        """
        SIGINT (Ctrl+C) and SIGTERM (docker stop, systemd) both stop the
        acceptor. Signal handlers can only be installed from the main
        thread, so an embedded server started elsewhere skips this.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.stop()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()


def create_app(config: Optional[ServerConfig] = None) -> HttpCapServer:
    """
    Factory for server instances.

    Example:
        app = create_app(ServerConfig(port=9000))
        app.serve_forever()
    """
    return HttpCapServer(config)
