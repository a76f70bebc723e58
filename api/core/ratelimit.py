"""Rate limiting configuration using slowapi.

SCALABILITY NOTES:
- Production should use Redis: set RATELIMIT_STORAGE_URI="redis://host:port/db"
- memory:// storage does NOT work with multiple workers/replicas
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)

settings = get_settings()

if not settings.debug and settings.ratelimit_storage_uri == "memory://":
    logger.warning(
        "ratelimit.storage.in_memory",
        hint="Set RATELIMIT_STORAGE_URI to a Redis URL when running several workers",
    )


def _get_request_identifier(request: Request) -> str:
    """Key rate limits by the socket peer address.

    Forwarding headers are never read here because any client can set them.
    Behind a reverse proxy, run uvicorn with ``--proxy-headers
    --forwarded-allow-ips=<proxy ip>`` so ``request.client`` already holds the
    real client address when it comes from a trusted hop.
    """
    return get_remote_address(request)


_using_redis = settings.ratelimit_storage_uri.startswith("redis://")

limiter = Limiter(
    key_func=_get_request_identifier,
    default_limits=["100/minute"],
    storage_uri=settings.ratelimit_storage_uri,
    # Degrade to per-process counters if Redis is briefly unavailable
    in_memory_fallback_enabled=_using_redis,
    key_prefix="heartbeat:",
)


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    """Custom handler for rate limit exceeded errors."""
    if not isinstance(exc, RateLimitExceeded):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    detail = exc.detail
    logger.warning(
        "ratelimit.exceeded",
        identifier=_get_request_identifier(request),
        limit=detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please slow down.",
            "retry_after": detail,
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )
