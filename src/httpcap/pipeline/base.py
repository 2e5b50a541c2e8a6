"""
=============================================================================
RESPONSE PIPELINE
=============================================================================

Every outgoing response passes through an ordered list of DECORATORS.
Each one looks at the response (and the request it answers) and adds or
rewrites headers. They run after the handler has set the status, in the
order they were registered:

    handler(request) ──► response (status set)
                             │
                             ▼
                 ┌───────────────────────┐
                 │ DateDecorator         │  Date: Wed, 01 Jan 2026 ...
                 ├───────────────────────┤
                 │ ServerDecorator       │  Server: HttpCap/1.1
                 ├───────────────────────┤
                 │ ContentDecorator      │  Content-Length: 0
                 ├───────────────────────┤
                 │ ConnectionControl...  │  Connection: keep-alive
                 └───────────────────────┘
                             │
                             ▼
                        to_bytes()

=============================================================================
THE DECORATOR CONTRACT
=============================================================================

    def decorate(self, response: HTTPResponse, request: Optional[HTTPRequest]) -> None

- Mutates `response` in place; may add, replace or remove headers.
- Must NOT change response.status: the handler owns it.
- Must keep no per-request state on `self`. One pipeline instance is
  shared by every worker thread at the same time.
- `request` is None when the response answers bytes that never became a
  request (a malformed message).

Unlike a middleware chain there is no "next": decorators cannot
short-circuit, they only post-process.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional, Tuple
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


class ResponseDecorator(ABC):
    """Abstract base class for response decorators."""

    @abstractmethod
    def decorate(self, response: HTTPResponse, request: Optional[HTTPRequest]) -> None:
        """
        Post-process the response.

        Args:
            response: The response being built; changed in place.
            request: The request being answered, or None.
        """

    @property
    def name(self) -> str:
        """Get the decorator name for logging."""
        return self.__class__.__name__


class ResponsePipeline:
    """
    A fixed, ordered sequence of response decorators.

    The sequence is a tuple: once built, the pipeline cannot change, which
    is what makes sharing it across worker threads safe.

    Usage:
        pipeline = ResponsePipeline([
            DateDecorator(),
            ServerDecorator("HttpCap/1.1"),
            ContentDecorator(),
            ConnectionControlDecorator(),
        ])

        pipeline.process(response, request)
    """

    def __init__(self, decorators: Iterable[ResponseDecorator] = ()):
        self._decorators: Tuple[ResponseDecorator, ...] = tuple(decorators)
        logger.debug(
            "Response pipeline: " + " -> ".join(d.name for d in self._decorators)
        )

    def process(self, response: HTTPResponse, request: Optional[HTTPRequest] = None) -> HTTPResponse:
        """
        Run every decorator, in registration order.

        Returns:
            The same response object, for convenience.
        """
        for decorator in self._decorators:
            decorator.decorate(response, request)
        return response

    def __len__(self) -> int:
        return len(self._decorators)

    def __iter__(self) -> Iterator[ResponseDecorator]:
        return iter(self._decorators)
