from uuid import UUID

from loguru import logger
from redis.asyncio import Redis

from app.settings import REDIS_URL

_redis: Redis | None = None
AVAILABILITY_TTL = 60  # 1 minute


def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(REDIS_URL, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def _availability_key(experience_date_id: UUID) -> str:
    return f"availability:{experience_date_id}"


async def get_availability_cache(experience_date_id: UUID) -> int | None:
    """Cached remaining spots for a date. Display only, never used to admit a booking."""
    try:
        data = await get_redis().get(_availability_key(experience_date_id))
        return int(data) if data is not None else None
    except Exception:
        logger.warning("Redis get failed, skipping availability cache", exc_info=True)
        return None


async def set_availability_cache(experience_date_id: UUID, available_spots: int) -> None:
    try:
        await get_redis().setex(
            _availability_key(experience_date_id), AVAILABILITY_TTL, available_spots
        )
    except Exception:
        logger.warning("Redis set failed, skipping availability cache", exc_info=True)


async def invalidate_availability_cache(experience_date_id: UUID) -> None:
    try:
        await get_redis().delete(_availability_key(experience_date_id))
    except Exception:
        logger.warning("Redis invalidate failed for availability cache", exc_info=True)
