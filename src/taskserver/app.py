"""
Application factory.

    server = create_app(ServerConfig(port=8080))
    server.run()

Registers:

    GET  /status   → StatusHandler
    POST /task     → TaskHandler

and the access-log middleware.
"""

from typing import Optional

from .config import ServerConfig
from .server import HTTPServer
from .handlers import StatusHandler, TaskHandler, STATUS_PATH, TASK_PATH
from .middleware import LoggingMiddleware


def create_app(
    config: Optional[ServerConfig] = None,
    task_handler: Optional[TaskHandler] = None,
) -> HTTPServer:
    """
    Build a task server with both endpoints wired in.

    Args:
        config: Server configuration. Defaults to ServerConfig().
        task_handler: Replacement TaskHandler (e.g. with a fake clock).

    Returns:
        A configured, not yet running, HTTPServer.
    """
    server = HTTPServer(config)

    server.use(LoggingMiddleware(log_format=server.config.log_format))

    status = StatusHandler()
    task = task_handler or TaskHandler()

    server.get(STATUS_PATH, name="status")(status.handle)
    server.post(TASK_PATH, name="task")(task.handle)

    return server
