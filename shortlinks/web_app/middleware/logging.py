"""Request logging middleware."""

import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

PROCESS_TIME_HEADER = "X-Process-Time-Ms"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its status and latency.

    Server errors log at ERROR, client errors at WARNING, everything else at
    INFO. Redirects are the hot path, so they log at DEBUG.
    """

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("shortlinks.web")

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.2f}"

        status_code = response.status_code
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        elif 300 <= status_code < 400:
            level = logging.DEBUG
        else:
            level = logging.INFO

        client = request.headers.get("x-forwarded-for") or (
            request.client.host if request.client else "unknown"
        )
        self.logger.log(
            level,
            f"{request.method} {request.url.path} -> {status_code} "
            f"in {elapsed_ms:.2f}ms (client {client})",
        )
        return response
