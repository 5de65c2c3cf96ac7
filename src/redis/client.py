"""Shared async Redis pool.

Alert delivery and the response cache both go through it.
"""

import redis.asyncio as redis

from src.utils.logger import get_logger
from src.utils.settings.redis import RedisSettings

logger = get_logger(__name__)

_pool: redis.ConnectionPool | None = None


def _get_pool() -> redis.ConnectionPool:
    global _pool
    if _pool is None:
        settings = RedisSettings()
        _pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL, max_connections=settings.REDIS_MAX_CONNECTIONS
        )
        logger.info(
            "Redis connection pool created",
            max_connections=settings.REDIS_MAX_CONNECTIONS,
        )
    return _pool


async def get_redis_client() -> redis.Redis:
    """Client on the shared pool; also used as a FastAPI dependency."""
    return redis.Redis(connection_pool=_get_pool())


async def close_redis_pool() -> None:
    global _pool
    if _pool is None:
        return
    await _pool.disconnect()
    _pool = None
    logger.info("Redis connection pool closed")
