"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses per RFC 7230.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.1 200 OK\r\n                      ← status line           │
    │    Content-Type: text/plain; charset=utf-8\r\n                      │
    │    X-Debug-Message: Request took 3 ms\r\n   ← handler headers       │
    │    Content-Length: 33\r\n                   ┐                       │
    │    Date: Fri, 16 Oct 2026 12:00:00 GMT\r\n  ├ added by to_bytes()   │
    │    Server: TaskServer/1.0\r\n               ┘                       │
    │    \r\n                                     ← separator             │
    │    Result of the multiplication 60          ← body                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Handlers build responses either with ResponseBuilder:

    response = (ResponseBuilder()
        .status(HTTPStatus.OK)
        .text("Server is alive")
        .header("X-Debug-Message", "Request took 0 ms")
        .build())

or with one of the one-liners at the bottom of this module (ok(),
not_found(), error_response(), ...).

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Union
import json

from .status_codes import HTTPStatus


TEXT_PLAIN = "text/plain; charset=utf-8"
APPLICATION_JSON = "application/json; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized onto a socket.

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    socket.sendall(...)
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        "HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE"

        int() keeps the line numeric on interpreters where IntEnum
        formats as "HTTPStatus.OK".
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def to_bytes(self, server_name: str = "TaskServer/1.0") -> bytes:
        """
        Serialize the response to bytes for socket.sendall().

        Content-Length, Date and Server are added unless the handler
        already set them. Content-Length always matches the body so the
        client knows where the response ends.

        Args:
            server_name: Value for the Server header.

        Returns:
            Complete HTTP response as bytes.
        """
        response_headers = dict(self.headers)

        if not self.get_header("Content-Length"):
            response_headers["Content-Length"] = str(len(self.body))

        if not self.get_header("Date"):
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if not self.get_header("Server"):
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTP responses.

    Every method except build() returns self:

        ResponseBuilder().status(HTTPStatus.OK).text("hi").header("X-A", "1").build()
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    # =========================================================================
    # STATUS / HEADERS
    # =========================================================================

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body. Strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = TEXT_PLAIN) -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any, pretty: bool = False) -> "ResponseBuilder":
        """
        Serialize data as JSON and set Content-Type.

        ensure_ascii=False keeps non-ASCII characters readable instead of
        escaping them.
        """
        indent = 2 if pretty else None
        self._body = json.dumps(data, indent=indent, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = APPLICATION_JSON
        return self

    # =========================================================================
    # CONNECTION
    # =========================================================================

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date.

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Fri, 16 Oct 2026 12:00:00 GMT

    HTTP dates are always GMT; pass a UTC datetime.
    """
    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
#     return ok("Server is alive")
#     return not_found("No route for /foo")
#
# =============================================================================

def ok(body: Union[str, bytes, dict, list] = "") -> HTTPResponse:
    """
    Create a 200 OK response.

    dict/list → JSON, str → text/plain, bytes → text/plain as-is.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)

    if isinstance(body, (dict, list)):
        builder.json(body)
    elif isinstance(body, str):
        builder.text(body)
    else:
        builder.body(body).content_type(TEXT_PLAIN)

    return builder.build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": message}).build()


def method_not_allowed(allowed_methods: List[str]) -> HTTPResponse:
    """
    Create a 405 Method Not Allowed response.

    RFC 7231 requires an Allow header listing the valid methods.
    """
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .json({"error": "Method Not Allowed", "allowed": allowed_methods})
        .build())


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Create an error response for any status with a JSON error body."""
    return ResponseBuilder().status(status).json({"error": message}).close_connection().build()
