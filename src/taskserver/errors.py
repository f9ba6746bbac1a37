"""
Exceptions raised while handling a request.

Each one carries the HTTP status code it maps to when the server runs
with error_mode="status". In the default "abort" mode the server logs
the exception and closes the connection without writing anything.

    RequestAborted (500)
    ├── MethodNotAllowed (405)
    └── MalformedOperandError (400, also a ValueError)
"""

from typing import Iterable, Optional


class RequestAborted(Exception):
    """
    Base class for failures that end a request without a normal response.
    """

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class MethodNotAllowed(RequestAborted):
    """Raised by the router when a path exists but not for this method."""

    status_code = 405

    def __init__(self, method: str, path: str, allowed: Iterable[str]):
        self.method = method
        self.path = path
        self.allowed = sorted(allowed)
        super().__init__(
            f"Method {method} not allowed on {path} "
            f"(allowed: {', '.join(self.allowed)})"
        )


class MalformedOperandError(RequestAborted, ValueError):
    """Raised when a task body contains something that is not an integer."""

    status_code = 400

    def __init__(self, operand: str, position: int = -1):
        self.operand = operand
        self.position = position
        where = f" at position {position}" if position >= 0 else ""
        super().__init__(f"Malformed operand{where}: {operand!r}")
