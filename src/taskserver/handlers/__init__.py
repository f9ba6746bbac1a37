"""
=============================================================================
ENDPOINT HANDLERS
=============================================================================

    ┌──────────────┬────────────────┬───────────────────────────────────────┐
    │ GET  /status │ StatusHandler  │ "Server is alive"                     │
    │ POST /task   │ TaskHandler    │ "Result of the multiplication <N>"    │
    └──────────────┴────────────────┴───────────────────────────────────────┘

    router.get("/status", StatusHandler().handle)
    router.post("/task", TaskHandler().handle)

=============================================================================
"""

from .status import StatusHandler, STATUS_PATH, ALIVE_MESSAGE
from .task import TaskHandler, TASK_PATH, DUMMY_RESPONSE, debug_message

__all__ = [
    "StatusHandler",
    "STATUS_PATH",
    "ALIVE_MESSAGE",
    "TaskHandler",
    "TASK_PATH",
    "DUMMY_RESPONSE",
    "debug_message",
]
