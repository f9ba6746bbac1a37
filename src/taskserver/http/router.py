"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /task                                                        │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌───────────────────────────────────────────────────────────┐     │
    │   │  ROUTE TABLE                                               │     │
    │   │    GET  /status  → StatusHandler.handle                    │     │
    │   │    POST /task    → TaskHandler.handle                      │     │
    │   └───────────────────────────────────────────────────────────┘     │
    │        │                                                             │
    │        ├── (path, method) registered   → call handler                │
    │        ├── path registered, other method → raise MethodNotAllowed   │
    │        └── path unknown                → 404 Not Found               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Paths match exactly: no parameters, no wildcards, and no trailing-slash
normalization ("/status/" is not "/status").

A wrong method is raised rather than answered so the server can decide
what the client sees: in the default abort mode the connection is closed
without a response, in status mode it becomes a 405 with an Allow header.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, not_found
from ..errors import MethodNotAllowed


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """
    A registered route.

        @router.post("/task", name="task")
        def task(request): ...

        Route(path="/task", method="POST", handler=task, name="task")
    """

    path: str
    method: str
    handler: Handler
    name: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)


class Router:
    """
    Exact-match request router.

        router = Router()

        @router.get("/status")
        def status(request):
            return ok("Server is alive")

        response = router.handle(request)
    """

    def __init__(self):
        # path → method → Route
        self._table: Dict[str, Dict[str, Route]] = {}
        self._order: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: str = "GET",
        name: Optional[str] = None,
        **meta: Any
    ) -> Route:
        """
        Register a handler for one method on one path.

        Registering the same (method, path) twice replaces the earlier
        handler.

        Args:
            path: Exact request path, e.g. "/task".
            handler: Callable taking an HTTPRequest, returning an HTTPResponse.
            method: HTTP method, case-insensitive.
            name: Optional route name.
            **meta: Free-form metadata.

        Returns:
            The created Route.
        """
        if not path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {path!r}")

        route = Route(
            path=path,
            method=method.upper(),
            handler=handler,
            name=name,
            meta=meta,
        )

        methods = self._table.setdefault(path, {})
        previous = methods.get(route.method)
        if previous is not None:
            self._order.remove(previous)
        methods[route.method] = route
        self._order.append(route)
        return route

    def route(
        self,
        path: str,
        method: str = "GET",
        name: Optional[str] = None,
        **meta: Any
    ) -> Callable[[Handler], Handler]:
        """Decorator form of add_route(). Returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name, **meta)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name, **meta)

    def post(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name, **meta)

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Route]:
        """Return the route registered for exactly (method, path), if any."""
        return self._table.get(path, {}).get(method.upper())

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered on a path, sorted. Empty if the path is unknown."""
        return sorted(self._table.get(path, {}))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to its handler.

        Raises:
            MethodNotAllowed: The path is registered, but not for this method.
        """
        route = self.match(request.method, request.path)
        if route is not None:
            return route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            raise MethodNotAllowed(request.method, request.path, allowed)

        return not_found(f"No route matches {request.path}")

    def routes(self) -> List[Route]:
        """All registered routes in registration order."""
        return list(self._order)
