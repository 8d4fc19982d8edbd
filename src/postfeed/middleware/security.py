"""Response hardening and cache policy.

Learn: Every response gets the hardening headers configured in Settings.
Responses that depend on who is calling must never be stored by a shared
cache: anything answered for a request that carried an Authorization
header, and the login response that hands out a fresh token, are marked
Cache-Control: no-store. The public feed listing stays cacheable.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from postfeed.config import Settings

TOKEN_PATHS = ("/api/v1/auth/login",)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Hardening headers plus no-store on credentialed responses."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.static_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": settings.frame_options,
            "Referrer-Policy": settings.referrer_policy,
        }
        self.hsts = None
        if settings.hsts_max_age > 0:
            self.hsts = f"max-age={settings.hsts_max_age}; includeSubDomains"

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        for name, value in self.static_headers.items():
            response.headers.setdefault(name, value)

        if "authorization" in request.headers or request.url.path in TOKEN_PATHS:
            response.headers["Cache-Control"] = "no-store"
            response.headers["Vary"] = "Authorization"

        # Only meaningful when the browser already reached us over TLS
        if self.hsts and request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = self.hsts
        return response
