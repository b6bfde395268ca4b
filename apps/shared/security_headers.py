"""Security headers for API services."""

import os

from fastapi import FastAPI, Request
from fastapi.responses import Response


DEFAULT_CSP = (
    "default-src 'self'; "
    "img-src 'self' data: https:; "
    "font-src 'self' data: https:; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "connect-src 'self'"
)

SECURITY_HEADERS = {
    "Content-Security-Policy": DEFAULT_CSP,
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains; preload"
NO_STORE = "no-cache, no-store, must-revalidate"


def setup_security_headers(app: FastAPI, api_prefix: str = "") -> None:
    """
    Add security headers to every response.

    API responses under api_prefix are marked as non-cacheable; static files
    keep whatever caching the file server chose. HSTS is only sent in
    production, where the service sits behind TLS.
    """
    hsts = os.getenv("ENVIRONMENT", "development") == "production"

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        path = request.url.path
        if not api_prefix or path == api_prefix or path.startswith(api_prefix + "/"):
            response.headers.setdefault("Cache-Control", NO_STORE)
        if hsts:
            response.headers.setdefault("Strict-Transport-Security", HSTS_VALUE)
        return response
