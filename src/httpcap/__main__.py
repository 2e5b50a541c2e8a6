"""
=============================================================================
HTTPCAP CLI ENTRY POINT
=============================================================================

    # Listen on the default port (8888)
    httpcap

    # Custom port
    httpcap 9000

    # Same thing without the console script
    python -m httpcap 9000

Everything else comes from the environment (see ServerConfig.from_env):

    HTTPCAP_HOST=127.0.0.1 HTTPCAP_LOG_LEVEL=DEBUG httpcap 9000

    # TLS
    HTTPCAP_CERTFILE=cert.pem HTTPCAP_KEYFILE=key.pem httpcap 8443

A port that is missing or not a number falls back to 8888 with a warning
instead of failing.

Exit status:
    0   stopped by SIGINT / SIGTERM
    1   could not start (port in use, bad TLS material, bad config)

=============================================================================
"""

import argparse
import logging
import sys
from typing import Optional

from . import __version__
from .config import DEFAULT_PORT, ServerConfig
from .errors import StartupError
from .server import HttpCapServer, setup_logging


logger = logging.getLogger("httpcap")


def parse_port(value: Optional[str]) -> int:
    """
    Port from the command line, or DEFAULT_PORT if absent or unusable.

    Examples:
        parse_port("9000") → 9000
        parse_port(None)   → 8888
        parse_port("http") → 8888 (with a warning)
    """
    if value is None:
        return DEFAULT_PORT
    try:
        port = int(value)
    except ValueError:
        logger.warning(f"Invalid port {value!r}, using default {DEFAULT_PORT}")
        return DEFAULT_PORT
    if not 0 <= port < 65536:
        logger.warning(f"Port {port} out of range, using default {DEFAULT_PORT}")
        return DEFAULT_PORT
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpcap",
        description="Capture and log every HTTP request it receives, answering 200 OK",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  httpcap                 # Listen on 8888
  httpcap 9000            # Listen on 9000
        """,
    )
    parser.add_argument(
        "port",
        nargs="?",
        default=None,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httpcap {__version__}",
    )
    return parser


def main(argv: Optional[list] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)
    config = config.replace(port=parse_port(args.port))

    try:
        server = HttpCapServer(config)
        server.serve_forever()
    except (StartupError, ValueError) as e:
        logger.error(f"Could not start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
