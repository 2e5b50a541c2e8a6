"""
Core networking: the listening socket, per-connection workers and the
Connection wrapper they share.

    ConnectionAcceptor ──accept()──► Connection ──► ConnectionWorker
"""

from .connection import Connection, ConnectionState
from .worker import ConnectionWorker
from .socket_server import ConnectionAcceptor

__all__ = [
    "Connection",
    "ConnectionState",
    "ConnectionWorker",
    "ConnectionAcceptor",
]
