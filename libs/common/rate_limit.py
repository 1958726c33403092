"""Rate limiting for marketplace endpoints.

Uses slowapi; the storage backend comes from ``RATE_LIMIT_STORAGE_URI``
(``memory://`` locally, a Redis URI in production).
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from libs.common.config import get_settings
from libs.common.error_handler import error_response


def _get_client_ip(request: Request) -> str:
    """
    Get client IP from request, handling proxies.

    Checks X-Forwarded-For header first (for proxied requests),
    then falls back to direct connection IP.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


@lru_cache
def get_limiter() -> Limiter:
    """Create and return the cached Limiter instance."""
    settings = get_settings()
    return Limiter(
        key_func=_get_client_ip,
        default_limits=["200/minute"],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Render rate limit errors in the standard error shape."""
    return error_response(
        429,
        f"Too many requests. Limit is {exc.detail}.",
        headers={"Retry-After": "60"},
    )


def auth_limit(func: Callable) -> Callable:
    """Strict limit for login and registration endpoints (5/minute)."""
    return limiter.limit("5/minute")(func)
