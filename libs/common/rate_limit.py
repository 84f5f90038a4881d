"""Rate limiting for the storefront API.

Uses slowapi. State lives in Redis when ``REDIS_URL`` points at one, and in
process memory (``memory://``) otherwise.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings


def _get_client_ip(request: Request) -> str:
    """
    Get client IP from request, handling proxies.

    The first address in X-Forwarded-For is the original client.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _get_user_or_ip(request: Request) -> str:
    """Rate limit by user id when the request is authenticated, else by IP."""
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.user_id}"
    return f"ip:{_get_client_ip(request)}"


@lru_cache
def get_limiter() -> Limiter:
    """Create and return the cached Limiter instance."""
    settings = get_settings()

    return Limiter(
        key_func=_get_user_or_ip,
        default_limits=["100/minute"],
        storage_uri=settings.REDIS_URL,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Return the storefront error shape with a Retry-After header."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests. Please wait a moment and try again.",
            "details": [str(exc.detail)] if exc.detail else [],
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


def payment_limit(func: Callable) -> Callable:
    """Strict limit for payment endpoints (10/minute per client)."""
    return limiter.limit("10/minute")(func)


def api_limit(func: Callable) -> Callable:
    """Standard limit for public endpoints (100/minute)."""
    return limiter.limit("100/minute")(func)
