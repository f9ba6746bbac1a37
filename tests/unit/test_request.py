"""
Unit tests for HTTP request parsing.
"""

import pytest

from taskserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/status"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.body == b""

    def test_parse_headers(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.get_header("host") == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == ["text/plain"]
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.path == "/status"
        assert request.query_params == {"verbose": ["1"]}

    def test_parse_post_with_body(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/task"
        assert request.body == b"3,4,5"
        assert request.content_length == 5
        assert request.is_keep_alive is False

    def test_repeated_headers_keep_every_value(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.headers["x-test"] == ["false", "true"]
        assert request.get_header("X-Test") == "false"

    def test_header_is_uses_first_value(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.header_is("X-Debug", "true") is True
        assert request.header_is("X-Test", "true") is False

    def test_header_is_ignores_case(self):
        raw = b"POST /task HTTP/1.1\r\nx-debug: TRUE\r\n\r\n"
        request = parse_request(raw)

        assert request.header_is("X-Debug", "true") is True

    def test_parse_path_with_special_chars(self):
        raw = b"GET /search?q=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/search"
        assert request.query_params["q"] == ["hello world"]

    @pytest.mark.parametrize("method", ["PROPFIND", "post", "X-CUSTOM"])
    def test_parse_any_method_token(self, method: str):
        raw = f"{method} /task HTTP/1.1\r\nHost: test\r\n\r\n".encode()

        assert parse_request(raw).method == method

    def test_parse_invalid_method_token(self):
        raw = b"G(E)T /path HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_invalid_request_line(self):
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_missing_terminator(self):
        raw = b"GET /status HTTP/1.1\r\nHost: test\r\n"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_parse_request_too_large(self):
        raw = b"POST /task HTTP/1.1\r\nContent-Length: 100\r\n\r\n" + b"1" * 100

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw, max_size=50)

        assert exc_info.value.status_code == 413

    def test_http_version_parsing(self):
        raw_10 = b"GET / HTTP/1.0\r\nHost: test\r\n\r\n"
        assert parse_request(raw_10).version == "HTTP/1.0"

        raw_11 = b"GET / HTTP/1.1\r\nHost: test\r\n\r\n"
        assert parse_request(raw_11).version == "HTTP/1.1"

        raw_20 = b"GET / HTTP/2.0\r\nHost: test\r\n\r\n"
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw_20)
        assert exc_info.value.status_code == 505

    def test_content_length_handling(self):
        raw = (
            b"POST /task HTTP/1.1\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"2,3EXTRA"
        )
        request = parse_request(raw)

        assert request.body == b"2,3"

    def test_incomplete_body(self):
        raw = b"POST /task HTTP/1.1\r\nContent-Length: 10\r\n\r\n1,2"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    @pytest.mark.parametrize("value", [b"abc", b"-1"])
    def test_invalid_content_length(self, value: bytes):
        raw = b"POST /task HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_case_insensitive_headers(self):
        raw = b"GET / HTTP/1.1\r\nContent-Type: text/html\r\nX-Custom-Header: value\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("content-type") == "text/html"
        assert request.get_header("CONTENT-TYPE") == "text/html"
        assert request.get_header("x-custom-header") == "value"

    def test_folded_header_continues_previous_value(self):
        raw = b"GET / HTTP/1.1\r\nX-Long: first\r\n  second\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("x-long") == "first second"

    def test_trailing_slash_is_preserved(self):
        raw = b"GET /status/ HTTP/1.1\r\n\r\n"

        assert parse_request(raw).path == "/status/"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("missing") == ""
        assert request.get_header("missing", "default") == "default"
        assert request.header_is("X-Test", "true") is False

    def test_keep_alive_http_10(self):
        request = HTTPRequest(method="GET", path="/", version="HTTP/1.0")
        assert request.is_keep_alive is False

        request.headers["connection"] = ["keep-alive"]
        assert request.is_keep_alive is True

    def test_content_length_invalid(self):
        request = HTTPRequest(method="POST", path="/", headers={"content-length": ["x"]})

        assert request.content_length == 0
