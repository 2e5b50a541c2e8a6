"""
=============================================================================
HTTPCAP - HTTP Request Capture Server
=============================================================================

A diagnostic HTTP/1.1 server: it accepts any request, writes what it
received (request line, headers, body) to a trace log, and answers
200 OK with an empty body. Point a client, webhook or proxy at it to see
exactly what goes over the wire.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpcap/
    ├── __init__.py            # This file - package exports
    ├── __main__.py            # CLI entry point (httpcap [port])
    ├── server.py              # HttpCapServer, logging setup
    ├── service.py             # One request/response cycle per call
    ├── config.py              # ServerConfig dataclass
    ├── errors.py              # Exception taxonomy
    ├── core/                  # Networking
    │   ├── socket_server.py   # ConnectionAcceptor (listening socket)
    │   ├── worker.py          # ConnectionWorker (thread per connection)
    │   └── connection.py      # Connection wrapper
    ├── http/                  # HTTP protocol pieces
    │   ├── parser.py          # httptools-backed request parser
    │   ├── request.py         # HTTPRequest, RequestEntity
    │   ├── response.py        # HTTPResponse serialization
    │   ├── headers.py         # Header element decomposition
    │   ├── registry.py        # URI pattern → handler
    │   └── status_codes.py    # HTTPStatus enum
    ├── pipeline/              # Response decorators
    │   ├── date.py
    │   ├── server_identity.py
    │   ├── content.py
    │   └── connection_control.py
    └── handlers/
        └── capture.py         # CaptureHandler and trace rendering

=============================================================================
QUICK START
=============================================================================

    $ httpcap 9000
    $ curl -d hello http://localhost:9000/submit

    POST /submit HTTP/1.1
      Host=[localhost:9000]
      User-Agent=[curl/8.5.0]
      Accept=[*/*]
      Content-Length=[5]
      Content-Type=[application/x-www-form-urlencoded]
    hello

Embedded:

    from httpcap import HttpCapServer, ServerConfig

    server = HttpCapServer(ServerConfig(port=9000)).start()
    ...
    server.stop()

=============================================================================
"""

__version__ = "1.1.0"

from .config import ServerConfig, Transport, DEFAULT_PORT
from .errors import HttpCapError, StartupError, ConnectionClosed, ProtocolViolation
from .server import HttpCapServer, create_app, setup_logging

__all__ = [
    "HttpCapServer",
    "ServerConfig",
    "Transport",
    "DEFAULT_PORT",
    "HttpCapError",
    "StartupError",
    "ConnectionClosed",
    "ProtocolViolation",
    "create_app",
    "setup_logging",
    "__version__",
]
