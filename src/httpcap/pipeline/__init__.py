"""
=============================================================================
RESPONSE PIPELINE PACKAGE
=============================================================================

Decorators applied, in order, to every outgoing response:

    1. DateDecorator               Date header
    2. ServerDecorator             Server identity header
    3. ContentDecorator            Content-Length / Transfer-Encoding
    4. ConnectionControlDecorator  Connection: keep-alive / close

standard_pipeline() composes exactly that sequence. Build it once at
startup and share it: decorators hold no per-request state.

=============================================================================
"""

from .base import ResponseDecorator, ResponsePipeline
from .date import DateDecorator
from .server_identity import ServerDecorator
from .content import ContentDecorator
from .connection_control import ConnectionControlDecorator
from ..config import DEFAULT_SERVER_NAME


def standard_pipeline(server_name: str = DEFAULT_SERVER_NAME) -> ResponsePipeline:
    """The Date → Server → Content → Connection pipeline."""
    return ResponsePipeline([
        DateDecorator(),
        ServerDecorator(server_name),
        ContentDecorator(),
        ConnectionControlDecorator(),
    ])


__all__ = [
    # Base classes
    "ResponseDecorator",
    "ResponsePipeline",

    # Built-in decorators
    "DateDecorator",
    "ServerDecorator",
    "ContentDecorator",
    "ConnectionControlDecorator",

    "standard_pipeline",
]
