"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server can run into falls in one of four buckets:

    ┌──────────────────────┬──────────────────────────────────────────────┐
    │ StartupError         │ Listening socket cannot be bound, or the     │
    │                      │ TLS material cannot be loaded. Fatal: the    │
    │                      │ accept loop is never entered.                │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ ConnectionClosed     │ Peer ended the stream. Expected; ends that   │
    │                      │ connection's loop silently.                  │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ OSError              │ Read/write failure on an established socket  │
    │                      │ (timeouts and TLS errors included). Ends     │
    │                      │ that connection only.                        │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ ProtocolViolation    │ Bytes that do not form a valid HTTP message. │
    │                      │ Ends that connection only.                   │
    └──────────────────────┴──────────────────────────────────────────────┘

Per-connection errors never leave the worker thread that owns the
connection. Plain OSError is used as-is for I/O failures; wrapping it would
only hide errno and the TLS details.
=============================================================================
"""


class HttpCapError(Exception):
    """Base class for all httpcap errors."""


class StartupError(HttpCapError):
    """
    Raised when the server cannot start serving.

    The original OSError / ssl.SSLError is chained as __cause__.
    """


class ConnectionClosed(HttpCapError):
    """Raised when the peer closes the stream before a full request arrived."""


class ProtocolViolation(HttpCapError):
    """
    Raised when the received bytes are not a valid HTTP message.

    Carries the status code that the error response should use, the same
    way a parse error maps onto 400 / 501 / 505.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code
