"""
=============================================================================
CONNECTION WORKER
=============================================================================

One thread per accepted connection. The worker owns its Connection from
the moment the acceptor hands it over until the socket is released.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Loop                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. TLS handshake (encrypted connections only)                      │
    │          │                                                           │
    │          ▼                                                           │
    │   2. while not cancelled and connection open:                        │
    │          service.handle_one(connection)                              │
    │          │                                                           │
    │          ├── ConnectionClosed    → normal end (client hung up)      │
    │          ├── ProtocolViolation   → 400 already sent, end            │
    │          └── OSError             → I/O failure or timeout, end      │
    │                                                                      │
    │   3. finally: connection.shutdown()  (exactly once)                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Whatever happens inside one worker stays there: the acceptor never waits
for workers, and workers never look at each other.

=============================================================================
"""

import logging
import threading

from ..errors import ConnectionClosed, ProtocolViolation
from .connection import Connection


logger = logging.getLogger(__name__)


class ConnectionWorker(threading.Thread):
    """
    Serves one connection until it closes.

    daemon=True: a worker stuck on an idle keep-alive client must not keep
    the process alive once the acceptor has stopped.
    """

    def __init__(self, connection: Connection, service):
        super().__init__(name=f"httpcap-worker-{connection.id}", daemon=True)

        self.connection = connection
        self.service = service
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Ask the loop to stop after the current request."""
        self._cancelled.set()

    def run(self):
        conn = self.connection
        logger.debug(f"[{conn.id}] Worker started for {conn.client_ip}:{conn.client_port}")

        try:
            conn.handshake()
            while not self._cancelled.is_set() and conn.is_open:
                self.service.handle_one(conn)

        except ConnectionClosed as e:
            logger.debug(f"[{conn.id}] {e}")

        except ProtocolViolation as e:
            logger.debug(f"[{conn.id}] Protocol violation: {e}")

        except OSError as e:
            logger.debug(f"[{conn.id}] I/O error: {e}")

        finally:
            conn.shutdown()
            logger.debug(f"[{conn.id}] Worker finished")
