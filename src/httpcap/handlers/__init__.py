"""
=============================================================================
REQUEST HANDLERS
=============================================================================

A handler is any callable taking an HTTPRequest and returning an
HTTPResponse:

    def handler(request: HTTPRequest) -> HTTPResponse:
        ...

Handlers are registered in a HandlerRegistry under a URI pattern. The
server registers CaptureHandler.handle under "*".

=============================================================================
"""

from .capture import CaptureHandler, render_elements, render_header, render_trace

__all__ = [
    "CaptureHandler",
    "render_elements",
    "render_header",
    "render_trace",
]
