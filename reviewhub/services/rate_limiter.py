"""
Rate Limiting Service

slowapi limiter keyed by client IP (proxy headers honoured), stored in
Redis so limits hold across API instances.

Tiers, applied to routes through the decorators below:
- limit_reads: feeds, review detail, profiles (settings.rate_limit_default)
- limit_writes: reviews, comments, reactions, follows, blocks
  (settings.rate_limit_write)
- limit_email_codes: sending a verification code and registering; each
  call can send mail or create an account
- limit_sign_in: login, refresh and code verification, guarding against
  password and code guessing
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from reviewhub.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

EMAIL_CODE_LIMIT = "5/minute"
SIGN_IN_LIMIT = "10/minute"


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For entry, then X-Real-IP, then the peer address."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """Create the limiter; Redis storage only when limiting is enabled."""
    storage_uri = settings.redis_url if settings.rate_limit_enabled else "memory://"

    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"reads: {settings.rate_limit_default}, writes: {settings.rate_limit_write}"
    )

    return limiter


limiter = create_limiter()


def limit_reads():
    return limiter.limit(settings.rate_limit_default)


def limit_writes():
    return limiter.limit(settings.rate_limit_write)


def limit_email_codes():
    return limiter.limit(EMAIL_CODE_LIMIT)


def limit_sign_in():
    return limiter.limit(SIGN_IN_LIMIT)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    429 in the API's usual {"detail": ...} shape.

    Retry-After is the length of the window that was exhausted.
    """
    limit_detail = str(exc.detail)
    retry_after = exc.limit.limit.get_expiry()

    response = JSONResponse(
        status_code=429,
        content={"detail": f"Too many requests ({limit_detail}). Please slow down."},
    )
    response.headers["Retry-After"] = str(retry_after)
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)} on {request.url.path}: {limit_detail}")

    return response
