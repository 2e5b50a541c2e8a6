"""Date header decorator."""

from datetime import datetime, timezone
from typing import Callable, Optional

from .base import ResponseDecorator
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, format_http_date


class DateDecorator(ResponseDecorator):
    """
    Adds a Date header with the current time, unless one is already set.

    RFC 7231 section 7.1.1.2: an origin server with a clock MUST send Date
    on 2xx, 3xx and 4xx responses, and MAY on 1xx and 5xx. Interim 1xx
    responses are left alone.

    Args:
        clock: Returns the current UTC time. Tests pass a fixed clock.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def decorate(self, response: HTTPResponse, request: Optional[HTTPRequest]) -> None:
        if response.status.is_informational:
            return
        response.add_header_if_absent("Date", format_http_date(self._clock()))
