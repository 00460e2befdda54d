"""
Redis caching service for schedule listings.

CACHING STRATEGY
================

What we cache:
  - Per-film schedule responses (JSON-serialized)
  - Cache key pattern: "schedule:film={film_id}"

The schedule page is read far more often than seats are booked, and the
reservation path never reads the cache, so a stale listing can at worst
show a seat as free that the order then rejects.

Invalidation strategy:
  - After each successful reservation: delete the key of that film
  - TTL expiry (REDIS_CACHE_TTL) for anything missed

Failure mode:
  Redis errors are logged, counted, and treated as a miss. The listing is
  then served straight from the screening store.
"""

import json
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from cinema_booking.core.config import get_settings
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

SCHEDULE_KEY_PREFIX = "schedule:film="

_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Shared client, connected on first use. None when caching is off or Redis is down."""
    global _client

    if not settings.REDIS_ENABLED:
        return None
    if _client is not None:
        return _client

    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except RedisError as e:
        logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    _client = client
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def make_schedule_key(film_id: str) -> str:
    return f"{SCHEDULE_KEY_PREFIX}{film_id}"


@asynccontextmanager
async def _cache_op(operation: str, key: str):
    """Log and count a failed cache call instead of raising it."""
    try:
        yield
    except (RedisError, ValueError) as e:
        record_cache_operation(operation, "error")
        logger.error("cache_error", operation=operation, key=key, error=str(e))


async def get_cached_schedule(film_id: str) -> Optional[dict]:
    client = await get_redis()
    if client is None:
        return None

    key = make_schedule_key(film_id)
    async with _cache_op("get", key):
        raw = await client.get(key)
        record_cache_operation("get", "hit" if raw else "miss")
        if raw:
            return json.loads(raw)
    return None


async def set_cached_schedule(film_id: str, data: dict) -> None:
    client = await get_redis()
    if client is None:
        return

    key = make_schedule_key(film_id)
    async with _cache_op("set", key):
        await client.set(key, json.dumps(data, default=str), ex=settings.REDIS_CACHE_TTL)
        record_cache_operation("set", "ok")


async def invalidate_schedule(film_id: str) -> None:
    """Drop the cached schedule of one film after its seats changed."""
    client = await get_redis()
    if client is None:
        return

    key = make_schedule_key(film_id)
    async with _cache_op("invalidate", key):
        deleted = await client.delete(key)
        record_cache_operation("invalidate", "ok")
        logger.debug("cache_invalidated", key=key, keys_deleted=deleted)


async def get_cache_stats() -> dict:
    """Keyspace hit/miss counters for /health."""
    client = await get_redis()
    if client is None:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
