"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP/1.1 request bytes into HTTPRequest objects (RFC 7230).

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    POST /task HTTP/1.1\r\n              ← request line              │
    │    Host: localhost:8080\r\n             ┐                           │
    │    X-Debug: true\r\n                    ├ headers                   │
    │    Content-Length: 5\r\n                ┘                           │
    │    \r\n                                 ← separator                 │
    │    3,4,5                                ← body (Content-Length)     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HEADERS ARE MULTI-VALUED
=============================================================================

A header name may appear more than once. Instead of folding repeats into
one comma-joined string, every value is kept in arrival order:

    X-Test: true
    X-Test: false          →   {"x-test": ["true", "false"]}

Names are case-insensitive, so they are stored lowercase. Handlers that
care about "the" value of a header read the first one via get_header().

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the status code to send back:

        400 Bad Request                - Malformed request syntax
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         HTTP method (GET, POST, ...)
        path:           Request path without query string
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Lowercase name → list of values, in arrival order
        query_params:   Parsed query string, name → list of values
        body:           Raw body bytes (exactly Content-Length long)
        client_address: (ip, port) of the peer
        received_ns:    perf_counter_ns() from just before the body was read,
                        None when the request did not come off a socket
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, List[str]] = field(default_factory=dict)
    query_params: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)
    received_ns: Optional[int] = None

    # =========================================================================
    # HEADER ACCESS
    # =========================================================================

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get the first value of a header (case-insensitive lookup).

        Example:
            request.get_header("X-Debug")   # same as "x-debug"
        """
        values = self.headers.get(name.lower())
        return values[0] if values else default

    def has_header(self, name: str) -> bool:
        return name.lower() in self.headers

    def header_is(self, name: str, expected: str) -> bool:
        """
        True if the header is present and its first value equals
        `expected`, ignoring case.

        This is how the task endpoint reads its mode switches:
            request.header_is("X-Test", "true")
        """
        if not self.has_header(name):
            return False
        return self.get_header(name).lower() == expected.lower()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def content_length(self) -> int:
        """Content-Length as an int, 0 if missing or invalid."""
        try:
            return int(self.get_header("content-length", "0"))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        return self.get_header("user-agent")

    @property
    def is_keep_alive(self) -> bool:
        """
        Should the connection stay open after this request?

        HTTP/1.1: keep alive unless "Connection: close"
        HTTP/1.0: close unless "Connection: keep-alive"
        """
        connection = self.get_header("connection").lower()

        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

        Raw Request Bytes
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  1. Size check                      too large → 413              │
        │  2. Find \\r\\n\\r\\n                   missing   → 400              │
        │  3. Request line  METHOD SP URI SP VERSION                       │
        │                                     bad       → 400 / 505        │
        │  4. Headers       "Name: Value" → {"name": ["Value", ...]}       │
        │  5. Body          exactly Content-Length bytes                   │
        └───────────────────────────────────────────────────────────────────┘
              │
              ▼
        HTTPRequest
    """

    # RFC 7230 token; whether the method is acceptable is the router's call
    METHOD_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
    REQUEST_LINE_PATTERN = re.compile(rf"^({METHOD_TOKEN}) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 64 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data.

        Args:
            data: Raw HTTP request bytes from the socket.
            client_address: Peer (ip, port), kept for logging.

        Returns:
            Parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        # ─────────────────────────────────────────────────────────────────
        # BODY: trust Content-Length only
        # ─────────────────────────────────────────────────────────────────
        raw_length = headers.get("content-length", ["0"])[0]
        try:
            content_length = int(raw_length)
        except ValueError:
            raise HTTPParseError(f"Invalid Content-Length: {raw_length!r}")
        if content_length < 0:
            raise HTTPParseError(f"Invalid Content-Length: {raw_length!r}")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, Dict[str, List[str]], str]:
        """
        Parse "METHOD SP REQUEST-URI SP HTTP-VERSION".

        Returns:
            (method, path, query_params, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        parsed = urlparse(uri)
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        return method, path, query_params, version

    def _parse_headers(self, lines: List[str]) -> Dict[str, List[str]]:
        """
        Parse header lines into lowercase name → list of values.

        Obsolete line folding (a line starting with whitespace) is
        appended to the previous value. Lines without a colon are
        skipped.
        """
        headers: Dict[str, List[str]] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    values = headers[current_name]
                    values[-1] = f"{values[-1]} {line.strip()}"
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            headers.setdefault(name, []).append(value.strip())
            current_name = name

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 64 * 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
