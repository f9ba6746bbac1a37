"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Translates raw TCP bytes into structured HTTP messages and back.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       bytes → HTTPRequest (multi-valued headers)         │
    │ response.py      HTTPResponse / ResponseBuilder → bytes             │
    │ router.py        (method, path) → handler                           │
    │ status_codes.py  HTTPStatus enum with reason phrases                │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    not_found,
    method_not_allowed,
    error_response,
    format_http_date,
)
from .router import Router, Route
from .status_codes import HTTPStatus

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "not_found",
    "method_not_allowed",
    "error_response",
    "format_http_date",

    "Router",
    "Route",

    "HTTPStatus",
]
