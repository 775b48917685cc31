"""Security headers middleware.

Learn: The header set is computed once from Settings when the app is
built, then stamped onto every response.

- Every response: nosniff, no framing, a strict referrer policy, and
  no-store caching (bodies carry one user's notes).
- JSON responses also get a Content-Security-Policy that forbids loading
  anything, since an API body is never meant to render as a page. HTML
  responses (the /docs UI) are left alone so the docs keep working.
- Strict-Transport-Security is sent only in production. TLS is terminated
  by the proxy in front of the app, so the request scheme seen here is not
  a reliable signal; the deployment environment is.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from notekeeper.config import Settings

API_CSP = "default-src 'none'; frame-ancestors 'none'"


def build_security_headers(settings: Settings) -> dict[str, str]:
    """Headers added to every response for this deployment."""
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }
    if settings.is_production:
        headers["Strict-Transport-Security"] = (
            f"max-age={settings.hsts_max_age}; includeSubDomains"
        )
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add the deployment's security headers to all responses."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.headers = build_security_headers(settings)

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(self.headers)
        response.headers.setdefault("Cache-Control", "no-store")
        if response.headers.get("content-type", "").startswith("application/json"):
            response.headers.setdefault("Content-Security-Policy", API_CSP)
        return response
