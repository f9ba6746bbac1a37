"""
=============================================================================
CORE NETWORKING
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ socket_server.py  listening socket + accept loop                    │
    │ connection.py     one client: buffered reads, writes, orderly close │
    │ thread_pool.py    fixed set of workers serving connections          │
    └─────────────────────────────────────────────────────────────────────┘

    accept() ──► Connection ──► ThreadPool.submit() ──► Worker serves it

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestTooLarge
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "ThreadPool",
]
