"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    headers.py       Header values decomposed into elements / parameters
    request.py       HTTPRequest model (tagged body variant)
    parser.py        httptools-driven incremental request parser
    response.py      HTTPResponse model and serialization
    registry.py      URI-pattern → handler mapping
    status_codes.py  Status codes and reason phrases

=============================================================================
"""

from .headers import Header, HeaderElement, NameValuePair, parse_elements
from .request import HTTPRequest, RequestEntity
from .response import HTTPResponse, format_http_date
from .status_codes import HTTPStatus
from .registry import HandlerRegistry, Handler
from .parser import RequestParser

__all__ = [
    # Headers
    "Header",
    "HeaderElement",
    "NameValuePair",
    "parse_elements",

    # Messages
    "HTTPRequest",
    "RequestEntity",
    "HTTPResponse",
    "format_http_date",
    "HTTPStatus",

    # Dispatch
    "HandlerRegistry",
    "Handler",

    # Parsing
    "RequestParser",
]
