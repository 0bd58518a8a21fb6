"""
Fixed-window rate limits backed by Redis.

Each limiter is a FastAPI dependency keyed by client IP. Redis errors fail
open: the request is allowed and a warning is logged.
"""

from dataclasses import dataclass

from fastapi import HTTPException, Request, status
from loguru import logger

from app import settings
from app.cache import get_redis


@dataclass(frozen=True)
class RateLimit:
    name: str
    max_requests: int
    window_seconds: int
    message: str = "Too many requests, please try again later"

    def key(self, identity: str) -> str:
        return f"ratelimit:{self.name}:{identity}"

    async def __call__(self, request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return

        identity = request.client.host if request.client else "unknown"
        key = self.key(identity)
        try:
            redis = get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, self.window_seconds)
            if count <= self.max_requests:
                return
            retry_after = await redis.ttl(key)
        except Exception:
            logger.warning("Redis rate limit check failed for {}", key, exc_info=True)
            return

        logger.warning(
            "Rate limit '{}' exceeded: ip={} path={}",
            self.name,
            identity,
            request.url.path,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=self.message,
            headers={"Retry-After": str(max(retry_after, 1))},
        )

    async def reset(self, request: Request) -> None:
        """Clear the caller's counter, e.g. after a successful login."""
        if not settings.RATE_LIMIT_ENABLED:
            return

        identity = request.client.host if request.client else "unknown"
        try:
            await get_redis().delete(self.key(identity))
        except Exception:
            logger.warning("Redis rate limit reset failed for {}", identity, exc_info=True)


general_limiter = RateLimit("general", max_requests=100, window_seconds=15 * 60)
login_limiter = RateLimit(
    "login",
    max_requests=5,
    window_seconds=15 * 60,
    message="Too many failed login attempts",
)
register_limiter = RateLimit(
    "register",
    max_requests=5,
    window_seconds=60 * 60,
    message="Too many account creation attempts",
)
contact_limiter = RateLimit(
    "contact",
    max_requests=10,
    window_seconds=60 * 60,
    message="Too many messages sent, please try again later",
)
payment_limiter = RateLimit(
    "payment",
    max_requests=10,
    window_seconds=15 * 60,
    message="Too many payment attempts",
)
