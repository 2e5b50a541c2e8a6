"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the capture server.

The configuration is a FROZEN dataclass: it is built once (from code, the
environment or the command line), validated, and then handed to the
acceptor. Nothing changes it afterwards, so every worker thread can read it
without locking.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line argument (listen port only)                       │
    │      └── httpcap 9000                                               │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPCAP_PORT=9000 HTTPCAP_CERTFILE=cert.pem httpcap        │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
import ssl
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import StartupError


DEFAULT_PORT = 8888
DEFAULT_SERVER_NAME = "HttpCap/1.1"


class Transport(Enum):
    """How bytes travel on an accepted connection."""
    PLAIN = "plain"          # Bare TCP
    ENCRYPTED = "encrypted"  # TLS on top of TCP


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the capture server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    LISTENER
    - host, port, transport, backlog

    CONNECTION
    - buffer_size, timeout

    TLS
    - certfile, keyfile, key_password

    IDENTITY / LOGGING
    - server_name, log_level

    =========================================================================
    """

    # =========================================================================
    # LISTENER SETTINGS
    # =========================================================================

    host: str = "0.0.0.0"
    """
    The IP address to bind to. All interfaces by default, since the
    server is usually pointed at by a client running somewhere else.
    """

    port: int = DEFAULT_PORT
    """
    The port number to listen on. 0 lets the OS pick a free port
    (handy in tests, read it back from ConnectionAcceptor.address).
    """

    transport: Transport = Transport.PLAIN
    """
    PLAIN for bare TCP, ENCRYPTED to wrap the listening socket in TLS.
    ENCRYPTED requires certfile.
    """

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    # =========================================================================
    # CONNECTION SETTINGS
    # =========================================================================

    buffer_size: int = 8192
    """Bytes requested from the socket per recv() call."""

    timeout: Optional[float] = None
    """
    Socket timeout for accepted connections in seconds.
    None = block forever. Idle clients are never disconnected in the
    default configuration; set this to harden the server.
    """

    # =========================================================================
    # TLS SETTINGS
    # =========================================================================

    certfile: Optional[str] = None
    """PEM file with the server certificate (and optionally the key)."""

    keyfile: Optional[str] = None
    """PEM file with the private key, if not bundled in certfile."""

    key_password: Optional[str] = None
    """Password protecting the private key, if any."""

    # =========================================================================
    # IDENTITY / LOGGING
    # =========================================================================

    server_name: str = DEFAULT_SERVER_NAME
    """Value of the Server header on every response."""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPCAP_HOST          Bind address (default: 0.0.0.0)
        HTTPCAP_PORT          Listen port (default: 8888)
        HTTPCAP_CERTFILE      PEM certificate; switches transport to TLS
        HTTPCAP_KEYFILE       PEM private key
        HTTPCAP_KEY_PASSWORD  Private key password
        HTTPCAP_TIMEOUT       Socket timeout in seconds (default: none)
        HTTPCAP_LOG_LEVEL     Logging level (default: INFO)

        =====================================================================
        """
        certfile = os.getenv("HTTPCAP_CERTFILE") or None
        timeout = os.getenv("HTTPCAP_TIMEOUT")
        return cls(
            host=os.getenv("HTTPCAP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTPCAP_PORT", str(DEFAULT_PORT))),
            transport=Transport.ENCRYPTED if certfile else Transport.PLAIN,
            timeout=float(timeout) if timeout else None,
            certfile=certfile,
            keyfile=os.getenv("HTTPCAP_KEYFILE") or None,
            key_password=os.getenv("HTTPCAP_KEY_PASSWORD") or None,
            log_level=os.getenv("HTTPCAP_LOG_LEVEL", "INFO"),
        )

    def replace(self, **changes) -> "ServerConfig":
        """Return a copy with some fields changed (the config itself is frozen)."""
        return dataclasses.replace(self, **changes)

    @property
    def is_encrypted(self) -> bool:
        return self.transport is Transport.ENCRYPTED

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup instead of on the first connection.

        Raises:
            ValueError: If any value is out of range or inconsistent.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.is_encrypted and not self.certfile:
            raise ValueError("Encrypted transport requires a certfile")

    def create_ssl_context(self) -> ssl.SSLContext:
        """
        Build the server-side TLS context from the configured PEM files.

        Raises:
            StartupError: If the certificate or key cannot be loaded.
        """
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        try:
            context.load_cert_chain(
                certfile=self.certfile,
                keyfile=self.keyfile,
                password=self.key_password,
            )
        except (OSError, ssl.SSLError) as e:
            raise StartupError(f"Cannot load TLS certificate {self.certfile}: {e}") from e
        return context
