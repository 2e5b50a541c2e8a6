"""
URI-pattern handler registry.

Maps request paths to handlers with three kinds of patterns:

    "*"            matches every path
    "/api/*"       prefix match
    "*.html"       suffix match
    "/exact"       exact match (always wins)

Among several matching patterns the longest wins; on a tie a prefix pattern
beats a suffix pattern. The query string and fragment are ignored.

The registry is filled before the server starts and only read afterwards,
so worker threads share it without locking.
"""

import logging
from typing import Callable, Dict, Optional

from .request import HTTPRequest
from .response import HTTPResponse


logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest], HTTPResponse]


def request_path(target: str) -> str:
    """Strip query string and fragment from a request target."""
    for marker in ("?", "#"):
        index = target.find(marker)
        if index != -1:
            target = target[:index]
    return target


def pattern_matches(pattern: str, path: str) -> bool:
    if pattern == "*":
        return True
    return ((pattern.endswith("*") and path.startswith(pattern[:-1]))
            or (pattern.startswith("*") and path.endswith(pattern[1:])))


class HandlerRegistry:
    """
    Pattern → handler mapping.

    Usage:
        registry = HandlerRegistry()
        registry.register("*", capture.handle)
        handler = registry.lookup(request)
    """

    def __init__(self):
        self._handlers: Dict[str, Handler] = {}

    def register(self, pattern: str, handler: Handler) -> "HandlerRegistry":
        if not pattern:
            raise ValueError("URI pattern may not be empty")
        self._handlers[pattern] = handler
        logger.debug(f"Registered handler for {pattern!r}")
        return self

    def unregister(self, pattern: str) -> None:
        self._handlers.pop(pattern, None)

    def lookup(self, request: HTTPRequest) -> Optional[Handler]:
        """
        Find the handler for a request.

        Returns:
            The best matching handler, or None if no pattern matches.
        """
        path = request_path(request.target)

        handler = self._handlers.get(path)
        if handler is not None:
            return handler

        best: Optional[str] = None
        for pattern, candidate in self._handlers.items():
            if not pattern_matches(pattern, path):
                continue
            if (best is None
                    or len(best) < len(pattern)
                    or (len(best) == len(pattern) and pattern.endswith("*"))):
                best = pattern
                handler = candidate
        return handler

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, pattern: str) -> bool:
        return pattern in self._handlers
