"""
Unit tests for HTTP response building.
"""

import json
from datetime import datetime, timezone

from taskserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    HTTPStatus,
    ok,
    not_found,
    method_not_allowed,
    error_response,
    format_http_date,
)


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED)
        assert response.status_line == "HTTP/1.1 405 Method Not Allowed"

    def test_to_bytes_includes_headers(self):
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Debug-Message": "Request took 0 ms"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Debug-Message: Request took 0 ms\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Server: TaskServer/1.0\r\n" in result
        assert b"Date: " in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_to_bytes_sets_content_length_in_bytes(self):
        response = HTTPResponse(body="héllo".encode("utf-8"))
        result = response.to_bytes()

        assert b"Content-Length: 6\r\n" in result

    def test_to_bytes_server_name(self):
        result = HTTPResponse().to_bytes(server_name="Custom/2.0")

        assert b"Server: Custom/2.0\r\n" in result

    def test_get_header_case_insensitive(self):
        response = HTTPResponse(headers={"Content-Type": "text/plain"})

        assert response.get_header("content-type") == "text/plain"
        assert response.get_header("missing", "x") == "x"

    def test_to_bytes_keeps_handler_headers_any_case(self):
        response = HTTPResponse(headers={"content-length": "3", "server": "Mine"}, body=b"abc")

        result = response.to_bytes()

        assert b"content-length: 3\r\n" in result
        assert b"Content-Length" not in result
        assert b"Server: TaskServer" not in result
        assert b"server: Mine\r\n" in result


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_status(self):
        response = ResponseBuilder().status(HTTPStatus.NOT_FOUND).build()
        assert response.status == HTTPStatus.NOT_FOUND

    def test_defaults_to_200(self):
        assert ResponseBuilder().build().status == HTTPStatus.OK

    def test_json_body(self):
        response = ResponseBuilder().json({"key": "value"}).build()

        assert response.headers["Content-Type"] == "application/json; charset=utf-8"
        assert json.loads(response.body) == {"key": "value"}

    def test_text_body(self):
        response = ResponseBuilder().text("Dummy response").build()

        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == b"Dummy response"

    def test_close_connection(self):
        response = ResponseBuilder().close_connection().build()
        assert response.headers["Connection"] == "close"

    def test_build_copies_headers(self):
        builder = ResponseBuilder().header("X-A", "1")
        first = builder.build()
        builder.header("X-B", "2")

        assert "X-B" not in first.headers

    def test_method_chaining(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("Result of the multiplication 60")
            .header("X-Debug-Message", "Request took 1 ms")
            .build())

        assert response.status == HTTPStatus.OK
        assert response.body == b"Result of the multiplication 60"
        assert response.headers["X-Debug-Message"] == "Request took 1 ms"


class TestConvenienceFunctions:
    """Tests for convenience response functions."""

    def test_ok_text(self):
        response = ok("Server is alive")

        assert response.status == HTTPStatus.OK
        assert response.body == b"Server is alive"

    def test_ok_json(self):
        response = ok({"data": "test"})

        assert json.loads(response.body) == {"data": "test"}

    def test_ok_bytes(self):
        response = ok(b"raw")

        assert response.body == b"raw"
        assert response.headers["Content-Type"].startswith("text/plain")

    def test_not_found(self):
        response = not_found("No route")

        assert response.status == HTTPStatus.NOT_FOUND
        assert json.loads(response.body) == {"error": "No route"}

    def test_method_not_allowed_sets_allow(self):
        response = method_not_allowed(["GET"])

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET"

    def test_error_response_closes_connection(self):
        response = error_response(HTTPStatus.PAYLOAD_TOO_LARGE, "too big")

        assert response.status == HTTPStatus.PAYLOAD_TOO_LARGE
        assert response.headers["Connection"] == "close"
        assert json.loads(response.body) == {"error": "too big"}


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.METHOD_NOT_ALLOWED.phrase == "Method Not Allowed"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"

    def test_every_status_has_a_phrase(self):
        for status in HTTPStatus:
            assert status.phrase != "Unknown"

    def test_status_categories(self):
        assert not HTTPStatus.OK.is_error
        assert HTTPStatus.BAD_REQUEST.is_error
        assert HTTPStatus.INTERNAL_SERVER_ERROR.is_error


class TestFormatHTTPDate:
    """Tests for HTTP date formatting."""

    def test_format(self):
        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)

        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"
