"""Redis memoization for paid collaborator calls such as AI narratives.

Values are stored as JSON under ``realty:<prefix>:<digest>``. When Redis is
missing or unreachable the decorated coroutine is simply awaited.
"""

import functools
import hashlib
import json
import logging
from typing import Any, Callable

import redis.asyncio as redis

from realty_finance.config import settings

logger = logging.getLogger(__name__)

KEY_NAMESPACE = "realty"

_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.from_url(settings.redis_url, decode_responses=True)
    return _client


def default_key(*args: Any, **kwargs: Any) -> str:
    """Key material from the ``str()`` of every argument, kwargs order-insensitive."""
    return json.dumps([[str(a) for a in args], sorted((k, str(v)) for k, v in kwargs.items())])


def _cache_key(prefix: str, material: str) -> str:
    digest = hashlib.sha256(material.encode()).hexdigest()[:16]
    return f"{KEY_NAMESPACE}:{prefix}:{digest}"


def cached(prefix: str, ttl_seconds: int = 86400, key: Callable[..., str] = default_key):
    """Cache an async function's JSON-serializable result in Redis.

    Args:
        prefix: Key prefix, e.g. "narrative:financing"
        ttl_seconds: Time-to-live in seconds
        key: Builds the key material from the call arguments

    ``None`` results are never stored so failed calls are retried.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache_key = _cache_key(prefix, key(*args, **kwargs))
            try:
                hit = await (await get_redis()).get(cache_key)
            except (redis.RedisError, OSError):
                logger.warning("Redis unavailable, computing %s directly", cache_key)
                hit = None
            if hit is not None:
                logger.debug("Cache hit: %s", cache_key)
                return json.loads(hit)

            result = await func(*args, **kwargs)
            if result is None:
                return None

            try:
                await (await get_redis()).setex(cache_key, ttl_seconds, json.dumps(result, default=str))
            except (redis.RedisError, OSError):
                logger.warning("Could not store %s", cache_key)
            return result
        return wrapper
    return decorator
