"""Access log middleware — one structured log line per request.

Learn: Logs method, path, status and wall-clock duration after the
response is produced. Runs inside RequestIdMiddleware, so every entry
carries the request_id bound there.
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and latency."""

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        response: Response = await call_next(request)
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response
