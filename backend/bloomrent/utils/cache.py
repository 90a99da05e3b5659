"""Owner-scoped Redis cache.

The owner's property list is read on every dashboard visit and changes
only when a wizard step writes, so it is cached and dropped per owner::

    o:{owner_id}:{prefix}:{function}:{hash of simple kwargs}

Redis is optional. With ``cache_enabled`` off, or when Redis errors, the
wrapped function simply runs.
"""

import functools
import hashlib
import json
import logging
from datetime import date
from typing import Any, Callable

import redis.asyncio as redis

from bloomrent.config import settings

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None

_KEYABLE = (str, int, float, bool, type(None))


async def get_redis() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.from_url(settings.redis_url, decode_responses=True)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def cache_key(**kwargs) -> str:
    """Stable digest of keyword values; ``"default"`` when there are none."""
    if not kwargs:
        return "default"
    encoded = json.dumps(kwargs, sort_keys=True, default=str)
    return hashlib.md5(encoded.encode()).hexdigest()


def _owner_prefix(owner_id: str | None) -> str:
    return f"o:{owner_id}:" if owner_id else ""


def _key_kwargs(kwargs: dict[str, Any]) -> dict[str, Any]:
    # Sessions and other objects never take part in the key
    keyed = {}
    for name, value in kwargs.items():
        if isinstance(value, _KEYABLE):
            keyed[name] = value
        elif isinstance(value, date):
            keyed[name] = value.isoformat()
    return keyed


def _to_json(result: Any) -> str:
    if isinstance(result, list):
        result = [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in result]
    elif hasattr(result, "model_dump"):
        result = result.model_dump(mode="json")
    return json.dumps(result)


def cached(ttl: int = 300, prefix: str = "cache"):
    """Cache an async function's JSON-able result.

    Hits return the decoded JSON, not the original objects, so decorate
    functions whose callers accept plain dicts (response models do).

        @cached(ttl=120, prefix="properties")
        async def list_owner_properties(db, *, owner_id): ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.cache_enabled:
                return await func(*args, **kwargs)

            key = (
                f"{_owner_prefix(kwargs.get('owner_id'))}{prefix}:"
                f"{func.__name__}:{cache_key(**_key_kwargs(kwargs))}"
            )
            try:
                client = await get_redis()
                hit = await client.get(key)
            except redis.RedisError as e:
                logger.warning(f"Cache read failed for {key}, running uncached: {e}")
                return await func(*args, **kwargs)

            if hit is not None:
                logger.debug(f"Cache hit {key}")
                return json.loads(hit)

            result = await func(*args, **kwargs)
            try:
                await client.setex(key, ttl, _to_json(result))
            except redis.RedisError as e:
                logger.warning(f"Cache write failed for {key}: {e}")
            return result

        return wrapper

    return decorator


async def invalidate_cache(pattern: str, owner_id: str | None = None) -> None:
    """Drop ``pattern`` keys for one owner, e.g. ``("properties:*", owner_id)``."""
    if not settings.cache_enabled:
        return

    match = f"{_owner_prefix(owner_id)}{pattern}"
    try:
        client = await get_redis()
        keys = [key async for key in client.scan_iter(match=match)]
        if keys:
            await client.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache key(s) matching {match}")
    except redis.RedisError as e:
        logger.warning(f"Cache invalidation failed for {match}: {e}")
