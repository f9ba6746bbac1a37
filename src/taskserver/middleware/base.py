"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

Middleware wraps the router: it sees every request on the way in and
every response (or exception) on the way out.

    ┌─────────────────────────────────────────────────────────────┐
    │  LoggingMiddleware                                          │
    │  ┌───────────────────────────────────────────────────────┐  │
    │  │                                                       │  │
    │  │              FINAL HANDLER (router.handle)            │  │
    │  │                                                       │  │
    │  └───────────────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────────────┘

    request ──►  MW1 (before) ──► MW2 (before) ──► handler
    response ◄── MW1 (after)  ◄── MW2 (after)  ◄──┘

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class MyMiddleware(Middleware):
            def __call__(self, request, next):
                response = next(request)     # continue the chain
                response.headers["X-Seen"] = "1"
                return response

    Exceptions raised further in must be re-raised, not turned into
    responses; the server owns the decision of how a failure looks on
    the wire.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(router.handle)
        response = handler(request)

    First added = outermost.
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain MW1 → MW2 → ... → handler.

        Wrapping runs in reverse so the first-added middleware ends up
        outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped
