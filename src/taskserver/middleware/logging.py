"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

Writes one access-log line per request to the "taskserver.access" logger.

    text:  127.0.0.1 - - [16/Oct/2026:12:00:00 +0000] "POST /task" 200 31 0.42ms
    json:  {"request_id": "3f2a9c1e", "method": "POST", "path": "/task", ...}

Failed requests (the handler raised) are logged at WARNING with the
status code the exception carries, content length 0, and re-raised
unchanged.

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


logger = logging.getLogger("taskserver.access")


@dataclass
class RequestLog:
    """One access-log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status_code"] = int(self.status_code)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache common-log style line with a trailing duration."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {int(self.status_code)} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware. Add it first so it sees every request.

        pipeline.add(LoggingMiddleware(log_format="json"))
        pipeline.add(LoggingMiddleware(skip_paths=["/status"]))
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        """
        Args:
            log_format: "text" or "json".
            log_level: Level for successful requests.
            skip_paths: Paths that are never logged (noisy health checks).
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")

        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            # Logged with the status the failure maps to; the server
            # decides whether that status is ever sent.
            status = getattr(e, "status_code", HTTPStatus.INTERNAL_SERVER_ERROR)
            self._emit(request_id, request, int(status), 0, start_time, logging.WARNING)
            raise

        if request.path in self.skip_paths:
            return response

        level = logging.WARNING if response.status.is_error else self.log_level
        self._emit(request_id, request, response.status, len(response.body), start_time, level)
        return response

    def _emit(
        self,
        request_id: str,
        request: HTTPRequest,
        status_code: int,
        content_length: int,
        start_time: float,
        level: int,
    ):
        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=status_code,
            content_length=content_length,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(level, json.dumps(entry.to_dict()))
        else:
            logger.log(level, entry.to_text())
