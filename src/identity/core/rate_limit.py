"""Per-endpoint rate limiting (slowapi, in-memory storage).

Limits are keyed by client IP and disabled in the testing environment.
"""

from fastapi import status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.identity.core.config import get_settings
from src.identity.core.errors import error_envelope
from src.identity.core.logging import get_logger

logger = get_logger(__name__)

REGISTER_LIMIT = "3/hour"
LOGIN_LIMIT = "5/minute"
REFRESH_LIMIT = "10/minute"
EMAIL_LIMIT = "3/hour"


def get_rate_limit_key(request: Request) -> str:
    """Key by client IP only; never by user-controlled headers."""
    return get_remote_address(request) or "unknown"


def create_limiter() -> Limiter:
    settings = get_settings()
    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)
    return Limiter(key_func=get_rate_limit_key)


# Note: reads settings at import time
limiter = create_limiter()


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render 429 through the standard error envelope."""
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_envelope(
            status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests, please try again later"
        ),
    )
