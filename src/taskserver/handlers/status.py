"""
=============================================================================
STATUS HANDLER
=============================================================================

GET /status answers a fixed liveness string:

    $ curl http://localhost:8080/status
    Server is alive

It checks nothing beyond "a worker picked up the request", so it is
suitable as a liveness check.

=============================================================================
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok


STATUS_PATH = "/status"
ALIVE_MESSAGE = "Server is alive"


class StatusHandler:
    """
    Liveness endpoint.

        status = StatusHandler()
        router.get("/status", status.handle)
    """

    def __init__(self, message: str = ALIVE_MESSAGE):
        self.message = message

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        return ok(self.message)
