"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket: buffered request reads, response
writes, and an orderly TCP close.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection State Machine                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ─┐     │
    │               ▲                                                │     │
    │               └────────────────────────────────────────────────┘     │
    │                                                                      │
    │    any state ──► CLOSING ──► CLOSED                                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A connection closed without ever reaching WRITING is how an aborted
request looks to the client: it reads EOF and gets no response bytes.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"
CLOSE_DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


class RequestTooLarge(ValueError):
    """The buffered request grew past max_request_size."""


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The client socket.
        address: Client (ip, port).
        id: Short random id used to correlate log lines.
        state: Current ConnectionState.
        requests_handled: Requests read so far on this connection.
        body_started_ns: perf_counter_ns() taken when the headers of the
            latest request were complete, just before its body is read.
        timeout: Read timeout for the first request, None to block.
        keep_alive_timeout: Idle timeout while waiting for a follow-up.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0
    body_started_ns: Optional[int] = None

    buffer_size: int = 8192
    timeout: Optional[float] = None
    keep_alive_timeout: float = 5.0
    max_request_size: int = 64 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request (headers plus Content-Length body).

        Bytes past the end of this request stay buffered for the next
        call, so pipelined requests are not lost.

            recv() until \\r\\n\\r\\n  →  read Content-Length  →  recv() body
                                                                     │
                                        return request bytes  ◄──────┘

        Returns:
            Request bytes, or None if the client closed the connection (or
            went idle past keep_alive_timeout between requests).

        Raises:
            TimeoutError: The first request did not arrive within `timeout`.
            RequestTooLarge: The request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while HEADER_TERMINATOR not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._append(chunk)

            header_end = self._buffer.find(HEADER_TERMINATOR)
            body_start = header_end + len(HEADER_TERMINATOR)
            content_length = self._parse_content_length(self._buffer[:header_end])
            self.body_started_ns = time.perf_counter_ns()

            if body_start + content_length > self.max_request_size:
                raise RequestTooLarge(
                    f"Request too large: {body_start + content_length} bytes"
                )

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    # Client hung up mid-body; the parser reports it
                    break
                self._append(chunk)

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            self.state = ConnectionState.PROCESSING
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            if not self.is_closed:
                self.socket.settimeout(self.timeout)

    def _append(self, chunk: bytes):
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLarge(f"Request too large: {len(self._buffer)} bytes")

    def _recv(self) -> bytes:
        """recv() that maps a reset peer to EOF."""
        try:
            data = self.socket.recv(self.buffer_size)
            return data
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _parse_content_length(self, headers: bytes) -> int:
        """
        Pull Content-Length out of raw header bytes.

        Runs before the real parser, so it only needs to know how much
        body to read. Garbage or negative values read as 0 and the parser
        rejects the request afterwards.
        """
        header_str = headers.decode("latin-1").lower()
        for line in header_str.split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes with sendall().

        Returns:
            True if sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

            shutdown(SHUT_WR)   send FIN, the client reads EOF
            drain               read what the client still sends, so the
                                kernel does not answer with RST
            close()             release the descriptor

        Idempotent.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(CLOSE_DRAIN_TIMEOUT)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
