"""
Security middleware: security headers and CSRF protection for cookie sessions.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.auth import ACCESS_COOKIE, CSRF_COOKIE
from app.core.errors import error_body

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}

# Endpoints a browser must be able to call before it holds a CSRF token.
CSRF_EXEMPT_PATHS = {"/auth/login", "/auth/register", "/auth/refresh"}

# ---------------------------------------------------------------------------
# Security Headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response


# ---------------------------------------------------------------------------
# CSRF Protection (Double-Submit Cookie)
# ---------------------------------------------------------------------------

class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie CSRF protection.

    Only enforced for unsafe methods on requests that authenticate with the
    access_token cookie. Bearer-token clients are not exposed to CSRF.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method in SAFE_METHODS or request.url.path in CSRF_EXEMPT_PATHS:
            return await call_next(request)

        if request.headers.get("Authorization"):
            return await call_next(request)

        if ACCESS_COOKIE not in request.cookies:
            return await call_next(request)

        cookie_token = request.cookies.get(CSRF_COOKIE)
        header_token = request.headers.get("X-CSRF-Token")

        if not cookie_token or not header_token or cookie_token != header_token:
            return JSONResponse(
                status_code=403,
                content=error_body(
                    "CSRF_VALIDATION_FAILED", "Invalid or missing CSRF token.", 403
                ),
            )

        return await call_next(request)
