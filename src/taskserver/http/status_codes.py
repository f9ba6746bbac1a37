"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of RFC 7231 status codes this server can emit, as an IntEnum
that also knows its reason phrase.

    HTTP/1.1 200 OK
             ─── ──
              │   │
              │   └── Reason phrase (HTTPStatus.phrase)
              └────── Status code (int value)

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK                  - /status and /task results      │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request         - malformed request / operand    │
    │        │ 404 Not Found           - unknown path                   │
    │        │ 405 Method Not Allowed  - wrong method (status mode)     │
    │        │ 408 Request Timeout     - client too slow                │
    │        │ 413 Payload Too Large   - over max_request_size          │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Error      - unexpected handler failure     │
    │        │ 505 Version Not Supported - not HTTP/1.0 or HTTP/1.1     │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.OK.phrase
        'OK'
    """

    OK = 200

    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    INTERNAL_SERVER_ERROR = 500
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        """4xx or 5xx. Used by the access log to pick a log level."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
