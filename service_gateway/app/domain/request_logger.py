"""
Request logging middleware for Gateway.

Times every request, forwards a log entry to the metrics collector and
emits one structured log line. It observes only and never changes the
response.
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shared.logging import clear_context, get_logger, set_request_id
from shared.metrics import LogEntry, MetricsCollector


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Record timing and status for every request."""

    def __init__(self, app, metrics: MetricsCollector):
        super().__init__(app)
        self.metrics = metrics
        self.logger = get_logger("gateway.request_logger")

    async def dispatch(self, request: Request, call_next):
        set_request_id()
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            entry = LogEntry.create(
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration=duration_ms,
            )
            self.metrics.record(entry)

            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=duration_ms
            )
            clear_context()
