"""Rate limiting configuration for API endpoints.

Uses slowapi; the storage backend comes from RATE_LIMIT_STORAGE_URI
(in-memory by default, any limits-compatible URI for shared counters).
"""

from fastapi import Request, Response
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from ppdo.config import get_settings
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)


def _get_rate_limit_key(request: Request) -> str:
    """Get rate limit key based on user or IP.

    For authenticated requests, use user_id.
    For unauthenticated requests, use IP address.
    """
    # Set by get_current_user
    if hasattr(request.state, "user") and request.state.user:
        return f"user:{request.state.user.id}"

    return get_remote_address(request)


def _create_limiter(storage_uri: str = "memory://", enabled: bool = True) -> Limiter:
    """Create rate limiter with the given storage backend."""
    return Limiter(
        key_func=_get_rate_limit_key,
        storage_uri=storage_uri,
        strategy="fixed-window",
        enabled=enabled,
    )


def _configured_limiter() -> Limiter:
    try:
        settings = get_settings()
    except ValidationError as e:
        # Invalid settings surface properly when the app starts
        logger.warning("rate_limiter_settings_unavailable", error=str(e))
        return _create_limiter()
    return _create_limiter(settings.rate_limit_storage_uri, settings.rate_limit_enabled)


limiter = _configured_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors."""
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        key=_get_rate_limit_key(request),
        limit=str(exc.detail),
    )

    retry_after = getattr(exc, "retry_after", 60)
    detail = str(exc.detail)
    return JSONResponse(
        status_code=429,
        content={
            "error": "too_many_requests",
            "message": "Too many requests. Please wait a moment.",
            "detail": detail,
            "retry_after": retry_after,
        },
        headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": detail.split("/")[0] if "/" in detail else "unknown",
        },
    )


# ----- Rate Limit Decorators -----
# Usage: @limiter.limit(RATE_LIMIT_SEARCH)

RATE_LIMIT_DEFAULT = "100/minute"  # General API calls
RATE_LIMIT_SEARCH = "30/minute"  # Ranked search and category counts
RATE_LIMIT_SUGGEST = "120/minute"  # Type-ahead fires on every keystroke
RATE_LIMIT_REINDEX = "2/minute"  # Full index rebuilds
