"""Redis connection and read-through caching for reference data.

The same `redis.asyncio` client backs the cache and the Redis event bus.
Cached endpoints keep working when Redis is down: the decorator logs the
error and calls the wrapped function directly.

Keys look like `{prefix}:{function}:{hash}`, e.g.
`reference:list_languages:default` for a call without key arguments.
"""

import functools
import hashlib
import json
import logging
from datetime import date, datetime
from typing import Callable, Optional

import redis.asyncio as redis

from legalhub.config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None

# Keyword values of these types identify a cached call; anything else
# (sessions, users, requests) is an injected dependency and is ignored.
_KEY_TYPES = (int, str, bool, float, type(None))


async def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
    return _redis_client


async def close_redis():
    """Called from the app lifespan on shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def cache_key(**params) -> str:
    """Stable digest of the call parameters; "default" when there are none."""
    if not params:
        return "default"
    encoded = json.dumps(params, sort_keys=True)
    return hashlib.md5(encoded.encode()).hexdigest()


def _key_params(kwargs: dict) -> dict:
    params = {}
    for name, value in kwargs.items():
        if name.startswith("_"):
            continue
        if isinstance(value, _KEY_TYPES):
            params[name] = value
        elif isinstance(value, (date, datetime)):
            params[name] = value.isoformat()
    return params


def _to_json(result) -> str:
    if hasattr(result, "model_dump"):
        result = result.model_dump(mode="json")
    elif isinstance(result, list):
        result = [
            item.model_dump(mode="json") if hasattr(item, "model_dump") else item
            for item in result
        ]
    return json.dumps(result)


def cached(ttl: int = 300, prefix: str = "cache", key_builder: Optional[Callable] = None):
    """Cache an async function's JSON-serializable result in Redis.

    A hit returns the decoded JSON (dicts and lists, not models); FastAPI
    re-validates it against the route's `response_model`.

        @router.get("/languages", response_model=list[ReferenceItem])
        @cached(ttl=settings.reference_cache_ttl, prefix="reference")
        async def list_languages(db: AsyncSession = Depends(get_db)):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if key_builder is not None:
                key = key_builder(*args, **kwargs)
            else:
                key = f"{prefix}:{func.__name__}:{cache_key(**_key_params(kwargs))}"

            try:
                client = await get_redis()
                hit = await client.get(key)
                if hit:
                    logger.debug("Cache hit: %s", key)
                    return json.loads(hit)

                result = await func(*args, **kwargs)
                await client.setex(key, ttl, _to_json(result))
                logger.debug("Cache miss, stored: %s", key)
                return result
            except redis.RedisError as e:
                logger.warning("Redis unavailable, serving %s uncached: %s", key, e)
                return await func(*args, **kwargs)

        return wrapper

    return decorator


async def invalidate_cache(pattern: str):
    """Delete every key matching a glob pattern such as "reference:*"."""
    try:
        client = await get_redis()
        keys = [key async for key in client.scan_iter(match=pattern)]
        if keys:
            await client.delete(*keys)
        logger.info("Invalidated %d cache key(s) matching %s", len(keys), pattern)
    except redis.RedisError as e:
        logger.warning("Failed to invalidate %s: %s", pattern, e)
