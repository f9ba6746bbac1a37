"""
=============================================================================
TASKSERVER
=============================================================================

A small multithreaded HTTP/1.1 server built on raw sockets.

    GET  /status   "Server is alive"
    POST /task     "Result of the multiplication <N>" for a body like "3,4,5"

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   client ──TCP──► SocketServer ──► ThreadPool (8 workers)            │
    │                                        │                             │
    │                                        ▼                             │
    │                      RequestParser ──► Middleware ──► Router         │
    │                                                         │            │
    │                                 StatusHandler / TaskHandler          │
    │                                                         │            │
    │   client ◄──────────────── HTTPResponse.to_bytes() ◄────┘            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Quick start:

    $ python -m taskserver 8080
    Server started on port 8080

    from taskserver import create_app, ServerConfig
    create_app(ServerConfig(port=8080)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig
from .app import create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
