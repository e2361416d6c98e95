"""
Security Headers Middleware for FastAPI

Adds the usual hardening headers to every JSON response:
- X-Frame-Options / Content-Security-Policy frame-ancestors: no framing
- X-Content-Type-Options: no MIME sniffing
- Referrer-Policy: limited referrer leakage
- Strict-Transport-Security: HTTPS only (production)
- Cache-Control: no caching of authenticated data
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import IS_PRODUCTION

logger = logging.getLogger(__name__)


def get_csp_policy() -> str:
    """Content-Security-Policy for an API that only serves JSON"""
    directives = [
        "default-src 'none'",
        "frame-ancestors 'none'",
        "base-uri 'none'",
        "form-action 'self'",
    ]
    return "; ".join(directives)


def get_permissions_policy() -> str:
    features = [
        "accelerometer=()",
        "camera=()",
        "geolocation=()",
        "gyroscope=()",
        "microphone=()",
        "payment=()",
        "usb=()",
    ]
    return ", ".join(features)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all responses."""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        path = request.url.path
        if any(path.startswith(excluded) for excluded in self.exclude_paths):
            return response

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Content-Security-Policy"] = get_csp_policy()
        response.headers["Permissions-Policy"] = get_permissions_policy()
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"

        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"

        return response
