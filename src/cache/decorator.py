"""Read-through Redis cache for async service methods.

Cache failures are logged and treated as misses; a Redis outage never
fails the request that triggered the lookup.
"""

import pickle
from functools import wraps
from uuid import UUID

from src.redis.client import get_redis_client
from src.utils.logger import get_logger
from src.utils.settings.redis import RedisSettings

logger = get_logger(__name__)

_KEY_TYPES = (str, int, float, bool, UUID)


def _prefix() -> str:
    return RedisSettings().REDIS_CACHE_PREFIX


def _tag_key(tag: str) -> str:
    return f"{_prefix()}:tag:{tag}"


def _key_part(value) -> str:
    return str(value).replace(":", "_").replace("*", "_")


def _generate_cache_key(func, args: tuple, kwargs: dict) -> str:
    """Key from the function path and its scalar arguments.

    Services, sessions and requests are not scalars and never reach the key.
    """
    parts = [func.__module__.replace(".", ":"), func.__qualname__.replace(".", ":")]
    parts.extend(_key_part(arg) for arg in args if isinstance(arg, _KEY_TYPES))
    parts.extend(
        f"{name}={_key_part(value)}"
        for name, value in sorted(kwargs.items())
        if isinstance(value, _KEY_TYPES)
    )
    return f"{_prefix()}:" + ":".join(parts)


async def _get_cache(key: str):
    try:
        client = await get_redis_client()
        raw = await client.get(key)
    except Exception as e:
        logger.error("Cache read failed", key=key, error=str(e))
        return None
    return pickle.loads(raw) if raw is not None else None


async def _set_cache(key: str, value, ttl: int, tags: tuple[str, ...] = ()) -> bool:
    try:
        client = await get_redis_client()
        async with client.pipeline(transaction=False) as pipe:
            pipe.setex(key, ttl, pickle.dumps(value))
            for tag in tags:
                pipe.sadd(_tag_key(tag), key)
                pipe.expire(_tag_key(tag), ttl)
            await pipe.execute()
    except Exception as e:
        logger.error("Cache write failed", key=key, error=str(e))
        return False
    return True


async def _delete_cache(*keys: str) -> int:
    if not keys:
        return 0
    try:
        client = await get_redis_client()
        return await client.delete(*keys)
    except Exception as e:
        logger.error("Cache delete failed", keys=list(keys), error=str(e))
        return 0


async def _invalidate_by_tag(tag: str) -> int:
    try:
        client = await get_redis_client()
        members = await client.smembers(_tag_key(tag))
    except Exception as e:
        logger.error("Cache tag read failed", tag=tag, error=str(e))
        return 0

    if not members:
        return 0

    deleted = await _delete_cache(*members, _tag_key(tag))
    logger.info("Cache tag invalidated", tag=tag, entries=len(members))
    return deleted


def cached(ttl: int = 900, tags: tuple[str, ...] = ()):
    """Cache an async function's result for ``ttl`` seconds under ``tags``."""

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            key = _generate_cache_key(func, args, kwargs)

            hit = await _get_cache(key)
            if hit is not None:
                logger.debug("Cache hit", key=key)
                return hit

            result = await func(*args, **kwargs)
            await _set_cache(key, result, ttl, tags)
            return result

        return wrapper

    return decorator


async def invalidate_cache(func, *args, **kwargs) -> bool:
    """Drop the entry for one specific call of ``func``."""
    key = _generate_cache_key(func, args, kwargs)
    return await _delete_cache(key) > 0


async def invalidate_tag(tag: str) -> int:
    return await _invalidate_by_tag(tag)
