"""Fixed-window rate limiting for API services."""

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import Response
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from apps.shared.errors import error_response

logger = logging.getLogger(__name__)

# limits rate string ("20/second", "100 per minute"); empty disables limiting
RATE_LIMIT = os.getenv("RATE_LIMIT", "20/second")


def client_address(request: Request) -> str:
    """Client IP; behind a trusted proxy this is the forwarded address."""
    return request.client.host if request.client else "unknown"


def setup_rate_limiting(app: FastAPI, limit: Optional[str] = RATE_LIMIT) -> Optional[FixedWindowRateLimiter]:
    """
    Apply one global limit per client address to every request.

    Returns the limiter, or None when limiting is disabled.
    """
    if not limit:
        logger.info("Rate limiting disabled")
        return None

    rate = parse(limit)
    limiter = FixedWindowRateLimiter(MemoryStorage())
    app.state.limiter = limiter

    @app.middleware("http")
    async def enforce_rate_limit(request: Request, call_next) -> Response:
        key = client_address(request)
        if not limiter.hit(rate, "global", key):
            logger.warning(f"Rate limit exceeded for {key}: {rate}")
            return error_response(
                message=f"Rate limit exceeded: {rate}",
                category="rate_limit",
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            )
        return await call_next(request)

    return limiter
