import os

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from .config import SCORE_RATE_LIMIT


def _rate_limits_disabled() -> bool:
    return (os.getenv("DISABLE_RATE_LIMITS") or "").lower() == "true"


def _get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        if parts:
            return parts[-1]
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else ""


limiter = Limiter(key_func=_get_client_ip)


def score_rate_limit() -> str:
    # read on every request so tests can flip DISABLE_RATE_LIMITS
    if _rate_limits_disabled():
        return "1000/second"
    return SCORE_RATE_LIMIT


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    detail = exc.detail if isinstance(exc.detail, str) else ""
    if detail:
        message = f"rate limit exceeded: {detail}"
    else:
        message = "rate limit exceeded: slow down point entry."
    return JSONResponse(
        status_code=429,
        content={
            "title": "Too Many Requests",
            "status": 429,
            "detail": message,
            "code": "rate_limit_exceeded",
        },
        media_type="application/problem+json",
    )
