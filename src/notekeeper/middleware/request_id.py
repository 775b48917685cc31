"""Request ID middleware — one correlation id per request.

Learn: An upstream proxy may already have assigned an id (X-Request-ID).
We reuse it only when it looks like an id: short and made of URL-safe
characters. Anything else (oversized values, spaces, markup) is replaced
with a fresh UUID, because the id is echoed to the client and written into
every log line for the request.
"""

import re
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]+")

logger = structlog.get_logger()


def resolve_request_id(incoming: Optional[str]) -> tuple[str, bool]:
    """Return (request_id, accepted) for an inbound header value."""
    if (
        incoming
        and len(incoming) <= MAX_REQUEST_ID_LENGTH
        and _SAFE_REQUEST_ID.fullmatch(incoming)
    ):
        return incoming, True
    return str(uuid.uuid4()), False


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and echo it on the response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER)
        request_id, accepted = resolve_request_id(incoming)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        if incoming and not accepted:
            logger.debug("request_id.replaced", length=len(incoming))

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
