"""
Per-IP request limits on the unauthenticated sign-in endpoints.

Phone codes are six digits and every request sends an SMS, so
`/phone/request` and `/phone/verify` are the tightest. `/mobile-code` and
`/mobile/callback` share one budget, as one handoff always hits both.

Counters live in `rate_limit_storage_uri` (in-process by default; point it at
Redis when running more than one API process).
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from momo_auth.settings import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    enabled=_settings.rate_limit_enabled,
    storage_uri=_settings.rate_limit_storage_uri,
    key_prefix="momo-auth",
)


def phone_request_limit() -> str:
    return get_settings().rate_limit_phone_request


def phone_verify_limit() -> str:
    return get_settings().rate_limit_phone_verify


def mobile_code_limit() -> str:
    return get_settings().rate_limit_mobile_code


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    try:
        retry_after = int(exc.limit.limit.get_expiry())
    except AttributeError:
        retry_after = 60
    logger.warning(
        "rate limit hit",
        extra={"path": request.url.path, "client": get_remote_address(request)},
    )
    return JSONResponse(
        status_code=429,
        content={"detail": exc.detail},
        headers={"Retry-After": str(retry_after)},
    )
