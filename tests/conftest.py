"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taskserver import HTTPServer, ServerConfig, create_app


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /status?verbose=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/plain\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample task request with debug and test headers."""
    body = b"3,4,5"
    content_length = f"Content-Length: {len(body)}\r\n".encode()
    return (
        b"POST /task HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"X-Debug: true\r\n"
        b"X-Test: false\r\n"
        b"X-Test: true\r\n"
        + content_length +
        b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None

    @property
    def port(self) -> int:
        return self.server.port

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:  # surfaced by start()
            self.error = e

    def start(self):
        """Start server in background thread and wait until it accepts."""
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.error!r}")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    # ─────────────────────────────────────────────────────────────────────
    # CLIENT HELPERS
    # ─────────────────────────────────────────────────────────────────────

    def connect(self, timeout: float = 5.0) -> socket.socket:
        return socket.create_connection(("127.0.0.1", self.port), timeout=timeout)

    def send_raw(self, data: bytes, timeout: float = 5.0) -> bytes:
        """
        Send raw bytes, half-close, and read until the server closes.

        Returns everything the server wrote (b"" if it wrote nothing).
        """
        with self.connect(timeout) as sock:
            sock.sendall(data)
            sock.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                try:
                    chunk = sock.recv(65536)
                except ConnectionResetError:
                    break
                if not chunk:
                    break
                chunks.append(chunk)
            return b"".join(chunks)


def build_request(
    method: str,
    path: str,
    body: bytes = b"",
    headers: Optional[dict] = None,
) -> bytes:
    """Assemble a Connection: close request with a Content-Length."""
    lines = [f"{method} {path} HTTP/1.1", "Host: 127.0.0.1"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    lines.append(f"Content-Length: {len(body)}")
    lines.append("Connection: close")
    return ("\r\n".join(lines) + "\r\n\r\n").encode() + body


@pytest.fixture
def raw_request():
    """The build_request helper, for tests that talk raw HTTP."""
    return build_request


def _live_server(error_mode: str) -> Generator[TestServer, None, None]:
    server = create_app(ServerConfig(
        host="127.0.0.1",
        port=0,
        log_level="WARNING",
        error_mode=error_mode,
        keep_alive_timeout=1.0,
    ))
    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def test_server() -> Generator[TestServer, None, None]:
    """Task server in the default abort mode on a free port."""
    yield from _live_server("abort")


@pytest.fixture
def status_server() -> Generator[TestServer, None, None]:
    """Task server answering failures with 400/405/500."""
    yield from _live_server("status")
