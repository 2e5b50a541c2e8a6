"""
=============================================================================
CAPTURE HANDLER
=============================================================================

The diagnostic catch-all: registered under "*", it answers every request
with 200 OK and writes what it received to the trace logger.

=============================================================================
TRACE FORMAT
=============================================================================

    POST /submit?x=1 HTTP/1.1
      Host=[localhost:8888]
      Accept=[text/html;q=0.9,application/xml]
      Content-Type=[text/plain]
      Content-Length=[5]
    hello

    Line 1        the request line
    Then          one line per header: two spaces, the name, "=[", the
                  rendered elements, "]"
    Last          the body as text, only if the request has a body

Element rendering is kept byte for byte compatible with existing trace
consumers, including its unusual ordering. Element 0 contributes only its
name. Every later element contributes, in this order:

    "=" + value               (if it has a value)
    ";" + name [ "=" value ]  (for each of its parameters)
    ","
    name

so the value and parameters of element i appear BEFORE its own name:

    Accept: text/html, application/xml;q=0.9
    →  Accept=[text/html;q=0.9,application/xml]

    X-Test: a=1; b=2          (one element "a", value "1", param b=2)
    →  X-Test=[a]

The whole trace of a request is emitted as ONE log record, so traces of
concurrent connections never interleave line by line.

=============================================================================
"""

import logging
from typing import List

from ..http.headers import Header
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("httpcap.trace")


def render_elements(header: Header) -> str:
    """Render a header's elements in the trace element format."""
    parts: List[str] = []
    for index, element in enumerate(header.elements):
        if index > 0:
            if element.value is not None:
                parts.append("=")
                parts.append(element.value)
            for param in element.parameters:
                parts.append(";")
                parts.append(param.name)
                if param.value is not None:
                    parts.append("=")
                    parts.append(param.value)
            parts.append(",")
        parts.append(element.name)
    return "".join(parts)


def render_header(header: Header) -> str:
    """One trace line for a header: "  Name=[elements]"."""
    return f"  {header.name}=[{render_elements(header)}]"


def render_trace(request: HTTPRequest) -> str:
    """
    The full trace of a request, lines joined with "\\n".

    Reading the body text here is what drains the request entity.
    """
    lines = [request.request_line]
    lines.extend(render_header(header) for header in request.headers)
    if request.entity is not None:
        lines.append(request.entity.text())
    return "\n".join(lines)


class CaptureHandler:
    """
    Logs every request and answers 200 OK with an empty body.

    The method and target are never looked at: GET, POST, OPTIONS on any
    path all get the same treatment.

    Usage:
        capture = CaptureHandler()
        registry.register("*", capture.handle)
    """

    def __init__(self, sink: logging.Logger = trace_logger):
        self.sink = sink

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        self.sink.info(render_trace(request))
        if request.entity is not None:
            logger.debug(
                f"Drained {request.entity.content_length} body bytes "
                f"from {request.client_address[0]}:{request.client_address[1]}"
            )
        return HTTPResponse(status=HTTPStatus.OK)
