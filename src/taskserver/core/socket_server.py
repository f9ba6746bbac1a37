"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Every accepted client is
wrapped in a Connection and handed to a callback; the callback (the HTTP
server) decides which thread serves it.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Lifecycle                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    bind()            socket() → setsockopt() → bind() → listen()     │
    │        │             raises OSError if the port is taken            │
    │        ▼                                                             │
    │    serve(handler)    accept loop, BLOCKS until shutdown()            │
    │        │                                                             │
    │        └──► while running:                                           │
    │                accept()          wait (1s slices) for a client       │
    │                Connection(...)   wrap the client socket              │
    │                handler(conn)     hand off, return to accept          │
    │                                                                      │
    │    shutdown()        flag the loop to stop (any thread, idempotent)  │
    │    _cleanup()        restore signal handlers, close the socket       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

start() is bind() followed by serve(). The HTTP server calls the two
separately so it can report the bound port before blocking.

=============================================================================
SOCKET OPTIONS
=============================================================================

    SO_REUSEADDR   restart immediately after a crash without waiting out
                   TIME_WAIT.
    TCP_NODELAY    responses are small; send them without Nagle delay.

SO_REUSEPORT is deliberately not set: a second server on the same port
must fail to bind instead of silently sharing it.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).

        No socket is created until bind().
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The (host, port) actually bound.

        With port 0 the OS picks the port, so this reads it back from the
        socket once bound. Before bind() it is the configured address.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    @property
    def port(self) -> int:
        return self.address[1]

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() wakes up periodically to notice shutdown()
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Install SIGTERM / SIGINT handlers that trigger shutdown().

        signal.signal() only works on the main thread; when the server runs
        in a background thread (tests, embedding) the process keeps its
        existing handlers and the owner calls shutdown() itself.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def bind(self) -> Tuple[str, int]:
        """
        Create, bind and listen.

        Returns:
            The bound (host, port).

        Raises:
            OSError: If the address cannot be bound (e.g. port in use).
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        if self.config.backlog is None:
            self._socket.listen()
        else:
            self._socket.listen(self.config.backlog)

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        return host, port

    def start(self, connection_handler: Callable[[Connection], None]):
        """Bind and serve. Blocks until shutdown()."""
        self.bind()
        self.serve(connection_handler)

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Run the accept loop on an already bound socket.

        Args:
            connection_handler: Called once per accepted connection. Must
                                return quickly; the HTTP server submits the
                                connection to its worker pool.
        """
        if self._socket is None:
            raise RuntimeError("serve() called before bind()")

        self._running = True
        self._setup_signals()
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Stop the accept loop. Safe to call from any thread, more than once."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        self._ready_event.clear()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running. False on timeout."""
        return self._ready_event.wait(timeout)
