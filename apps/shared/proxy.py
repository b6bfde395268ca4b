"""Running behind a TLS-terminating reverse proxy."""

import logging
import os

from fastapi import FastAPI
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

logger = logging.getLogger(__name__)

# Comma separated proxy addresses whose X-Forwarded-* headers are trusted, or "*"
FORWARDED_ALLOW_IPS = os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")


def setup_proxy_support(
    app: FastAPI,
    trusted_hosts: str = FORWARDED_ALLOW_IPS,
    https_redirect: bool = False,
) -> None:
    """
    Honor X-Forwarded-For / X-Forwarded-Proto from trusted proxies and
    optionally redirect plain HTTP to HTTPS.

    Call after every other middleware so the forwarded client address and
    scheme are in place before CORS, rate limiting and the redirect check.
    """
    if https_redirect:
        app.add_middleware(HTTPSRedirectMiddleware)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=trusted_hosts)
    logger.info(f"Trusting forwarded headers from {trusted_hosts}; HTTPS redirect {'on' if https_redirect else 'off'}")
