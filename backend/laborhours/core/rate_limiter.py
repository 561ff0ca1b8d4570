"""
Rate Limiting for Labor Hours API
=================================
Implements rate limiting using slowapi with in-process storage.

Only credential-checking endpoints are limited:
- /auth/login: LOGIN_RATE_LIMIT (default 5 req/min, brute force protection)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from laborhours.core.config import settings
from laborhours.core.logging_config import logger


limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return a JSON 429 with a Retry-After header"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_remote_address(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": "60"}
    )


def login_rate_limit():
    """Rate limit for credential checks"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT)
