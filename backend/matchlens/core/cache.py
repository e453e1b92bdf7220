"""Redis cache utilities and the cache-first read-through decorator.

Reads check Redis before calling the origin. A miss calls the origin and
stores its result with a TTL. ``None`` results are never stored so failed
origin calls are retried on the next read. Redis failures degrade to a
miss and never hide the origin result.
"""

import hashlib
import json
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

import redis.asyncio as aioredis
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from redis.asyncio.connection import ConnectionPool

from matchlens.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = ParamSpec("P")
M = TypeVar("M", bound=BaseModel)

_pool: ConnectionPool | None = None


def get_redis_pool() -> ConnectionPool:
    """Get or create the Redis connection pool."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.redis_url,
            max_connections=10,
            decode_responses=True,
        )
    return _pool


async def get_redis_client() -> aioredis.Redis:
    """Get an async Redis client from the connection pool."""
    return aioredis.Redis(connection_pool=get_redis_pool())


async def close_redis_pool() -> None:
    """Disconnect the pool. Called during app shutdown."""
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


async def cache_get(key: str) -> str | None:
    """Get a value from cache, or None on miss or Redis failure."""
    try:
        client = await get_redis_client()
        value = await client.get(key)
        logger.debug(f"Cache {'HIT' if value else 'MISS'}: {key}")
        return str(value) if value else None
    except aioredis.RedisError as e:
        logger.warning(f"Redis GET error for key {key}: {e}")
        return None


async def cache_set(key: str, value: str, ttl: int) -> bool:
    """Set a value in cache with TTL (seconds). Returns False on failure."""
    try:
        client = await get_redis_client()
        await client.setex(key, ttl, value)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True
    except aioredis.RedisError as e:
        logger.warning(f"Redis SET error for key {key}: {e}")
        return False


async def cache_delete(key: str) -> bool:
    """Delete a key from cache. Returns False on failure."""
    try:
        client = await get_redis_client()
        await client.delete(key)
        logger.debug(f"Cache DELETE: {key}")
        return True
    except aioredis.RedisError as e:
        logger.warning(f"Redis DELETE error for key {key}: {e}")
        return False


async def cache_delete_pattern(pattern: str) -> int:
    """Delete all keys matching a glob pattern and return how many were removed."""
    try:
        client = await get_redis_client()
        keys = [str(key) async for key in client.scan_iter(match=pattern)]
        if not keys:
            return 0
        deleted = await client.delete(*keys)
        logger.info(f"Cache DELETE pattern {pattern}: {deleted} keys removed")
        return int(deleted) if deleted else 0
    except aioredis.RedisError as e:
        logger.warning(f"Redis DELETE pattern error for {pattern}: {e}")
        return 0


def generate_cache_key(*args: Any, prefix: str = "cache") -> str:
    """Generate a consistent hashed cache key from arguments."""
    key_data = json.dumps(args, sort_keys=True, default=str)
    key_hash = hashlib.md5(key_data.encode()).hexdigest()[:16]
    return f"{prefix}:{key_hash}"


def _serialize(value: Any) -> str:
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True)
    return json.dumps(value, default=str)


def _deserialize(raw: str, model: type[BaseModel] | None) -> Any:
    if model is not None:
        return model.model_validate_json(raw)
    return json.loads(raw)


async def get_or_set(
    key: str,
    factory: Callable[[], Awaitable[T | None]],
    ttl: int,
    model: type[BaseModel] | None = None,
) -> T | None:
    """Return the cached value for ``key`` or compute, store and return it.

    Args:
        key: Cache key.
        factory: Origin call, awaited only on a miss.
        ttl: Time-to-live in seconds.
        model: Pydantic model used to rebuild cached values.
    """
    cached_value = await cache_get(key)
    if cached_value is not None:
        try:
            return _deserialize(cached_value, model)  # type: ignore[no-any-return]
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(f"Invalid cached value for {key}, refetching: {e}")

    result = await factory()
    if result is None:
        logger.debug(f"Origin returned nothing for {key}, not caching")
        return None

    try:
        await cache_set(key, _serialize(result), ttl)
    except (TypeError, ValueError) as e:
        logger.warning(f"Failed to serialize result for caching: {e}")
    return result


def cached(
    ttl: int,
    prefix: str = "cache",
    key_builder: Callable[..., str] | None = None,
    model: type[BaseModel] | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator applying the cache-first pattern to an async function.

    Args:
        ttl: Time-to-live in seconds.
        prefix: Prefix for generated keys when ``key_builder`` is not given.
        key_builder: Called with the wrapped function's arguments to build the key.
        model: Pydantic model the cached JSON is validated into on a hit.

    Usage:
        @cached(ttl=3600, key_builder=lambda self, code: f"football:competition:{code.upper()}",
                model=CompetitionResponse)
        async def get_competition(self, code: str) -> CompetitionResponse | None:
            ...
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            if key_builder is not None:
                cache_key = key_builder(*args, **kwargs)
            else:
                cache_key = generate_cache_key(func.__qualname__, args, kwargs, prefix=prefix)

            async def origin() -> T:
                return await func(*args, **kwargs)

            return await get_or_set(cache_key, origin, ttl, model=model)  # type: ignore[return-value]

        return wrapper

    return decorator


async def health_check() -> bool:
    """Check if Redis is available and responding."""
    try:
        client = await get_redis_client()
        await client.ping()
        return True
    except aioredis.RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return False
