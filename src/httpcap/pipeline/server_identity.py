"""Server header decorator."""

from typing import Optional

from .base import ResponseDecorator
from ..config import DEFAULT_SERVER_NAME
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


class ServerDecorator(ResponseDecorator):
    """Adds "Server: <name>" unless the handler already set one."""

    def __init__(self, server_name: str = DEFAULT_SERVER_NAME):
        self.server_name = server_name

    def decorate(self, response: HTTPResponse, request: Optional[HTTPRequest]) -> None:
        if self.server_name:
            response.add_header_if_absent("Server", self.server_name)
