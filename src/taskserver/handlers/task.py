"""
=============================================================================
TASK HANDLER
=============================================================================

POST /task multiplies the comma-separated integers in the request body.

    $ curl -d '3,4,5' http://localhost:8080/task
    Result of the multiplication 60

=============================================================================
REQUEST HEADERS
=============================================================================

Both switches compare the FIRST value of the header, case-insensitively,
against "true". Anything else (including "1" or "yes") is off.

    ┌──────────────┬──────────────────────────────────────────────────────┐
    │ X-Test: true │ Skip the computation, answer "Dummy response".       │
    │              │ The body is not looked at, so it may be anything.    │
    ├──────────────┼──────────────────────────────────────────────────────┤
    │ X-Debug: true│ Time body read and computation, add                 │
    │              │   X-Debug-Message: Request took <N> ms               │
    │              │ N is whole milliseconds, rounded down.               │
    └──────────────┴──────────────────────────────────────────────────────┘

X-Test wins when both are set: the dummy response carries no debug header.

=============================================================================
FAILURES
=============================================================================

A malformed body raises MalformedOperandError. The handler does not turn
it into a response; the server either drops the connection or answers
400, depending on its error_mode.

=============================================================================
"""

import time
from typing import Callable

from ..compute import calculate_response
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, HTTPStatus


TASK_PATH = "/task"
DUMMY_RESPONSE = "Dummy response"

TEST_HEADER = "X-Test"
DEBUG_HEADER = "X-Debug"
DEBUG_MESSAGE_HEADER = "X-Debug-Message"

NS_PER_MS = 1_000_000


class TaskHandler:
    """
    Multiplication endpoint.

        task = TaskHandler()
        router.post("/task", task.handle)

    `clock` returns nanoseconds on the same scale as time.perf_counter_ns,
    which Connection uses to stamp request.received_ns; tests swap it for
    a fake to pin the reported duration.
    """

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns):
        self.clock = clock

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        if request.header_is(TEST_HEADER, "true"):
            return (ResponseBuilder()
                .status(HTTPStatus.OK)
                .text(DUMMY_RESPONSE)
                .build())

        debug = request.header_is(DEBUG_HEADER, "true")

        # stamped just before the body was read; None outside a live socket
        start_ns = request.received_ns
        if start_ns is None:
            start_ns = self.clock()
        body = calculate_response(request.body)
        elapsed_ms = (self.clock() - start_ns) // NS_PER_MS

        builder = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text(body.decode("utf-8")))

        if debug:
            builder.header(DEBUG_MESSAGE_HEADER, debug_message(elapsed_ms))

        return builder.build()


def debug_message(elapsed_ms: int) -> str:
    return f"Request took {elapsed_ms} ms"
