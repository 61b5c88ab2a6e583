"""
Redis Cache Service

Redis holds two kinds of data for the review feed:
- Counters: `review:{id}:viewCount`, views recorded since the last flush.
  Many request handlers INCR them concurrently; only the flush job
  deletes them.
- Snapshots: `hotReviews{N}Day` / `coldReviews{N}Day`, JSON lists written
  by the ranking job and read by the hot/cold feeds.

Every helper degrades gracefully: when Redis is unreachable or a command
fails, it logs a warning and returns a neutral value (None/False/0/[])
instead of raising. Callers that must know whether a write happened
(view counting) check the return value.
"""

import json
import logging
from collections.abc import Iterator
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from reviewhub.config import get_settings

logger = logging.getLogger(__name__)

VIEW_COUNT_PATTERN = "review:*:viewCount"

# =============================================================================
# Redis Connection
# =============================================================================

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create a Redis client connection.

    Uses a module-level singleton to maintain a single connection pool.
    Returns None if Redis is unavailable.

    Returns:
        Redis client instance or None if connection fails
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = get_settings()

    try:
        _redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        _redis_client.ping()
        logger.info("Successfully connected to Redis")
        return _redis_client
    except RedisError as e:
        logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
        _redis_client = None
        return None


def close_redis_connection() -> None:
    """Close the Redis connection on shutdown."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
        logger.info("Redis connection closed")


# =============================================================================
# Cache Key Generation
# =============================================================================

def make_cache_key(prefix: str, *args, suffix: str | None = None) -> str:
    """
    Build a colon-separated cache key.

    Examples:
        make_cache_key("review", 12, suffix="viewCount") -> "review:12:viewCount"
        make_cache_key("hotReviews7Day") -> "hotReviews7Day"
    """
    parts = [prefix]
    parts.extend(str(arg) for arg in args if arg is not None)
    if suffix:
        parts.append(suffix)
    return ":".join(parts)


def view_count_key(review_id: int) -> str:
    return make_cache_key("review", review_id, suffix="viewCount")


# =============================================================================
# JSON Values
# =============================================================================

def cache_get(key: str) -> Optional[Any]:
    """
    Get a JSON value from the cache.

    Returns:
        Deserialized value, or None if missing, unreadable or Redis is down
    """
    client = get_redis_client()
    if client is None:
        return None

    try:
        value = client.get(key)
        if value is not None:
            logger.debug(f"Cache HIT: {key}")
            return json.loads(value)
        logger.debug(f"Cache MISS: {key}")
        return None
    except RedisError as e:
        logger.warning(f"Cache get error for {key}: {e}")
        return None
    except json.JSONDecodeError as e:
        logger.warning(f"Cache JSON decode error for {key}: {e}")
        return None


def cache_set(key: str, value: Any, ttl: Optional[int] = None) -> bool:
    """
    Set a JSON value with a TTL (settings.cache_ttl when not given).

    Returns:
        True if stored, False otherwise
    """
    client = get_redis_client()
    if client is None:
        return False

    if ttl is None:
        ttl = get_settings().cache_ttl

    try:
        serialized = json.dumps(value, default=str)
        client.setex(key, ttl, serialized)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True
    except RedisError as e:
        logger.warning(f"Cache set error for {key}: {e}")
        return False
    except (TypeError, ValueError) as e:
        logger.warning(f"Cache serialization error for {key}: {e}")
        return False


# =============================================================================
# Counters
# =============================================================================

def cache_incr(key: str, amount: int = 1) -> Optional[int]:
    """
    Atomically increment an integer counter.

    Returns:
        The new value, or None if the increment did not happen
    """
    client = get_redis_client()
    if client is None:
        return None

    try:
        return int(client.incr(key, amount))
    except RedisError as e:
        logger.warning(f"Cache incr error for {key}: {e}")
        return None


def cache_pop(key: str) -> Optional[str]:
    """
    GETDEL: atomically read a raw value and remove the key.

    Returns:
        The value, or None if the key did not exist

    Raises:
        RedisError: the caller decides whether the value is still in place
    """
    client = get_redis_client()
    if client is None:
        return None
    return client.getdel(key)


def cache_get_int(key: str) -> int:
    """Read an integer counter; missing, malformed or unreachable counts as 0."""
    client = get_redis_client()
    if client is None:
        return 0

    try:
        value = client.get(key)
    except RedisError as e:
        logger.warning(f"Cache get error for {key}: {e}")
        return 0

    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-integer counter value for {key}: {value!r}")
        return 0


def cache_scan(pattern: str, count: int = 100) -> Iterator[str]:
    """
    Iterate over keys matching a pattern using SCAN (non-blocking, unlike KEYS).

    Stops early with a warning if Redis fails mid-scan.
    """
    client = get_redis_client()
    if client is None:
        return

    try:
        yield from client.scan_iter(match=pattern, count=count)
    except RedisError as e:
        logger.warning(f"Cache scan error for {pattern}: {e}")


def cache_get_many(keys: list[str]) -> list[Optional[str]]:
    """
    MGET raw values for keys, in order.

    Raises:
        RedisError: callers that batch (the view-count flush) decide how to
            handle a failed batch
    """
    if not keys:
        return []
    client = get_redis_client()
    if client is None:
        return [None] * len(keys)
    return client.mget(keys)


# =============================================================================
# Cache Statistics (for monitoring)
# =============================================================================

def get_cache_stats() -> dict:
    """
    Get cache statistics for the health endpoint.

    Returns:
        Dictionary with cache statistics
    """
    client = get_redis_client()
    if client is None:
        return {"status": "disconnected"}

    try:
        info = client.info("stats")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "keys": client.dbsize(),
        }
    except RedisError:
        return {"status": "error"}
