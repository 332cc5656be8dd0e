"""Redis async connection pool shared by the notifier and the edit locks."""

import logging

import redis.asyncio as aioredis

from driver_onboarding.config import settings

logger = logging.getLogger(__name__)

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url,
    decode_responses=True,
    max_connections=settings.redis_max_connections,
)


async def get_redis() -> aioredis.Redis:
    """Return a client on the shared pool; cheap, one per request is fine."""
    return aioredis.Redis(connection_pool=_pool)


async def close_redis() -> None:
    await _pool.disconnect()
    logger.info("Redis connection pool closed")
