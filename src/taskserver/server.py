"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together: listening socket, worker pool, parser, router
and middleware.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          HTTPServer.run()                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.bind()        fails fast with OSError                 │
    │        │                                                             │
    │   "Server started on port N"                                         │
    │        │                                                             │
    │   ThreadPool.start()         fixed set of workers                    │
    │        │                                                             │
    │   SocketServer.serve()  ──► accept ──► pool.submit(conn)             │
    │                                              │                       │
    │                                              ▼                       │
    │                               _process_connection (worker thread)    │
    │                                 read → parse → middleware → router   │
    │                                 → handler → send (→ keep-alive loop) │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHEN A HANDLER FAILS
=============================================================================

    ┌──────────────────────┬──────────────────────┬───────────────────────┐
    │ exception            │ error_mode="abort"   │ error_mode="status"   │
    ├──────────────────────┼──────────────────────┼───────────────────────┤
    │ MethodNotAllowed     │ close, no bytes      │ 405 + Allow header    │
    │ MalformedOperandError│ close, no bytes      │ 400                   │
    │ anything else        │ close, no bytes      │ 500                   │
    └──────────────────────┴──────────────────────┴───────────────────────┘

Framing problems found before routing (HTTPParseError, oversized
request, read timeout) are answered with their status code in both modes.

=============================================================================
"""

import logging
import sys
from typing import Optional, Callable, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool, RequestTooLarge
from .errors import MethodNotAllowed, MalformedOperandError, RequestAborted
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, Router,
    error_response, method_not_allowed,
)
from .middleware import MiddlewarePipeline, Middleware


logger = logging.getLogger(__name__)

STARTED_MESSAGE = "Server started on port {}"


class HTTPServer:
    """
    Multithreaded HTTP/1.1 server.

        server = HTTPServer(ServerConfig(port=8080))

        @server.get("/status")
        def status(request):
            return ok("Server is alive")

        server.use(LoggingMiddleware())
        server.run()          # blocks until SIGINT/SIGTERM or shutdown()

    create_app() in taskserver.app builds one with the /status and /task
    endpoints already registered.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(workers=self.config.workers)
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()
        self._middleware = MiddlewarePipeline()

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    # =========================================================================
    # CONFIGURATION API
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware. First added runs outermost."""
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    def get(self, path: str, **kwargs):
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._router.post(path, **kwargs)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port even when configured with 0."""
        return self._socket_server.address

    @property
    def port(self) -> int:
        return self._socket_server.port

    @property
    def pool(self) -> ThreadPool:
        return self._thread_pool

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Bind, announce, and serve until shutdown (blocking).

        Args:
            host: Override config.host.
            port: Override config.port (0 = any free port).

        Raises:
            OSError: If the listening socket cannot be bound. Nothing has
                     been started at that point.
        """
        if host is not None:
            self.config.host = host
        if port is not None:
            self.config.port = port
        self.config.validate()

        self._setup_logging()
        self._configure_int_conversion()

        self._handler = self._middleware.wrap(self._router.handle)

        self._socket_server.bind()
        self._announce()

        self._running = True
        self._thread_pool.start()

        try:
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Stop accepting connections. run() returns once workers finish."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running (for callers on other threads)."""
        return self._socket_server.wait_until_ready(timeout)

    def _announce(self):
        print(STARTED_MESSAGE.format(self.port), flush=True)
        logger.info(
            f"{self.config.server_name} on {self.config.host}:{self.port} "
            f"({self.config.workers} workers, error mode '{self.config.error_mode}')"
        )
        for route in self._router.routes():
            logger.debug(f"Route: {route.method:6} {route.path}")

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("taskserver").setLevel(level)

    def _configure_int_conversion(self):
        """
        Apply config.int_max_str_digits (Python 3.11+ caps int↔str at 4300
        digits by default; older interpreters have no cap).
        """
        if hasattr(sys, "set_int_max_str_digits"):
            sys.set_int_max_str_digits(self.config.int_max_str_digits)
            logger.debug(f"int_max_str_digits set to {self.config.int_max_str_digits}")

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand a fresh connection to the pool (runs on the accept thread)."""
        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Task queue full, dropping connection")
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve one connection (runs on a worker thread).

            loop:
                read request        None → client left, stop
                parse               HTTPParseError → status response, stop
                dispatch            handler failure → abort or status, stop
                send response
                keep-alive?         no → stop
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLarge as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break
                except OSError as e:
                    logger.debug(f"[{conn.id}] Read failed: {e}")
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Bad request: {e}")
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    break

                request.received_ns = conn.body_started_ns

                try:
                    response = self._handler(request)
                except Exception as e:
                    self._handle_failure(conn, request, e)
                    break

                keep_alive = request.is_keep_alive and self.config.keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive",
                        f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break

                if not keep_alive:
                    break

                conn.set_keep_alive()

    def _handle_failure(self, conn: Connection, request: HTTPRequest, error: Exception):
        """
        Log a handler failure, then either send nothing (abort mode) or
        the mapped error response (status mode). The caller closes the
        connection afterwards.
        """
        where = f"{request.method} {request.path}"

        if isinstance(error, MethodNotAllowed):
            logger.info(f"[{conn.id}] {where}: {error}")
        elif isinstance(error, RequestAborted):
            logger.warning(f"[{conn.id}] {where}: {error}")
        else:
            logger.error(f"[{conn.id}] {where}: unexpected handler error", exc_info=error)

        if self.config.abort_on_error:
            logger.debug(f"[{conn.id}] Closing connection without a response")
            return

        conn.send_response(
            self.error_response_for(error).to_bytes(self.config.server_name)
        )

    @staticmethod
    def error_response_for(error: Exception) -> HTTPResponse:
        """Map a handler exception to the response sent in status mode."""
        if isinstance(error, MethodNotAllowed):
            response = method_not_allowed(error.allowed)
            response.headers["Connection"] = "close"
            return response
        if isinstance(error, MalformedOperandError):
            return error_response(HTTPStatus.BAD_REQUEST, str(error))
        if isinstance(error, RequestAborted):
            try:
                status = HTTPStatus(error.status_code)
            except ValueError:
                status = HTTPStatus.INTERNAL_SERVER_ERROR
            return error_response(status, str(error))
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Answer a framing-level problem with a status and JSON error body."""
        response = error_response(status, message)
        conn.send_response(response.to_bytes(self.config.server_name))
