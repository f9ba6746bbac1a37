"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables for the task server live in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m taskserver 9000                                 │
    │                                                                      │
    │   2. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Defaults: port 8080 on all interfaces, a fixed pool of 8 workers, the
platform default backlog, no read timeout, and connections aborted (no
response) on handler errors.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional


ERROR_MODES = ("abort", "status")


@dataclass
class ServerConfig:
    """
    Configuration for the task server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - keep_alive, keep_alive_timeout, max_request_size

    THREADING SETTINGS
    - workers

    ERROR HANDLING
    - error_mode

    ARITHMETIC
    - int_max_str_digits

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces (default)
    - "127.0.0.1" - Localhost only
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: Optional[int] = None
    """
    Accept queue length passed to listen().
    None = platform default.
    """

    buffer_size: int = 8192
    """
    Size of each recv() call in bytes.
    """

    timeout: Optional[float] = None
    """
    Socket timeout in seconds for reading the first request.
    None = block forever (a stalled client holds its worker).
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """
    Serve more than one request per TCP connection (HTTP/1.1 default).
    """

    keep_alive_timeout: float = 5.0
    """
    Idle seconds before a kept-alive connection is closed.
    """

    max_request_size: int = 64 * 1024 * 1024  # 64 MB
    """
    Maximum request size in bytes. Task bodies can be long lists of
    very large numbers, so this is generous.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 8
    """
    Number of worker threads. Fixed: the pool never grows or shrinks.
    Requests beyond this many wait in the queue.
    """

    # ─────────────────────────────────────────────────────────────────────
    # ERROR HANDLING
    # ─────────────────────────────────────────────────────────────────────

    error_mode: str = "abort"
    """
    What the client sees when a handler fails.
    - "abort"  - connection closed, no response bytes
    - "status" - 405 / 400 / 500 response with a JSON error body
    """

    # ─────────────────────────────────────────────────────────────────────
    # ARITHMETIC
    # ─────────────────────────────────────────────────────────────────────

    int_max_str_digits: int = 0
    """
    Limit for int <-> str conversions (sys.set_int_max_str_digits).
    0 = unlimited, so products of any size can be parsed and printed.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    log_format: str = "text"
    """
    Access log format: 'json' or 'text'.
    """

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "TaskServer/1.0"
    """
    Value of the Server response header.
    """

    @property
    def abort_on_error(self) -> bool:
        """True when handler failures close the connection silently."""
        return self.error_mode == "abort"

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by HTTPServer at construction so bad settings fail before
        any socket is opened.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 1:
            raise ValueError("workers must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")

        if self.backlog is not None and self.backlog < 0:
            raise ValueError("backlog must be >= 0")

        if self.error_mode not in ERROR_MODES:
            raise ValueError(
                f"Invalid error_mode: {self.error_mode!r}. "
                f"Must be one of {', '.join(ERROR_MODES)}."
            )

        # CPython rejects limits between 1 and 639.
        if self.int_max_str_digits != 0 and self.int_max_str_digits < 640:
            raise ValueError("int_max_str_digits must be 0 or >= 640")
