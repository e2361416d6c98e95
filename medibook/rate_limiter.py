"""
Hybrid in-memory + Redis rate limiting utilities

Counters live in process memory and are synced to Redis every few seconds
when REDIS_URL is configured, so several workers share one budget without a
Redis round-trip per request. Without Redis the limiter is memory-only.
"""

import asyncio
import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import (
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    REDIS_URL,
)

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None
_redis_unavailable = False

# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Clean up expired entries every 60 seconds
last_cleanup_time = 0


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client.

    Returns None when REDIS_URL is not configured or the server did not answer
    the first ping; callers then fall back to memory-only counting.
    """
    global redis_client, _redis_unavailable

    if redis_client is not None or _redis_unavailable:
        return redis_client

    if not REDIS_URL:
        _redis_unavailable = True
        logger.info("REDIS_URL not set - rate limiting uses in-memory counters only")
        return None

    # Mask password in URL for logging
    masked_url = REDIS_URL.split("@")[-1] if "@" in REDIS_URL else REDIS_URL
    logger.info(f"📡 Connecting to Redis for rate limiting: {masked_url}")

    try:
        client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        client.ping()
        redis_client = client
        logger.info("Redis connected successfully via URL")
    except redis.RedisError as e:
        _redis_unavailable = True
        logger.error(f"❌ Failed to connect to Redis, using memory-only rate limiting: {e}")

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def _load_entry(key: str, window_seconds: int, client: Optional[redis.Redis], now: int) -> dict:
    if client is not None:
        try:
            redis_count = client.get(key)
            redis_ttl = client.ttl(key)
            if redis_count and redis_ttl > 0:
                return {
                    "count": int(redis_count),
                    "reset_time": now + redis_ttl,
                    "last_redis_sync": now,
                }
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")

    return {"count": 0, "reset_time": now + window_seconds, "last_redis_sync": now}


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis] = None
) -> tuple[bool, int, int]:
    """Check if rate limit is exceeded

    Args:
        key: Counter key for this rate limit
        limit: Maximum number of requests allowed
        window_seconds: Time window in seconds
        client: Redis client, or None for memory-only counting

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache()

    with cache_lock:
        if key not in memory_cache:
            memory_cache[key] = _load_entry(key, window_seconds, client, current_time)

        cache_entry = memory_cache[key]

        if current_time >= cache_entry["reset_time"]:
            cache_entry["count"] = 0
            cache_entry["reset_time"] = current_time + window_seconds
            cache_entry["last_redis_sync"] = 0

        is_allowed = cache_entry["count"] < limit
        if is_allowed:
            cache_entry["count"] += 1

        time_since_sync = current_time - cache_entry.get("last_redis_sync", 0)
        if client is not None and time_since_sync >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, cache_entry["count"], ex=window_seconds)
                cache_entry["last_redis_sync"] = current_time
                logger.debug(f"📡 Synced {key} to Redis: {cache_entry['count']}/{limit}")
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync to Redis: {e}")

        ttl = cache_entry["reset_time"] - current_time
        return is_allowed, cache_entry["count"], max(0, ttl)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """
    FastAPI dependency for rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for the counter key
        use_ip: If True, use client IP in key (per-IP limit), otherwise global
    """
    if not RATE_LIMIT_ENABLED:
        return

    key = f"{key_prefix}:{get_client_ip(request)}" if use_ip else f"{key_prefix}:global"

    def run_check():
        return check_rate_limit(key, limit, window_seconds, get_redis_client())

    if REDIS_URL:
        # Redis calls block up to the socket timeout; keep them off the event loop
        is_allowed, current_count, ttl = await asyncio.to_thread(run_check)
    else:
        is_allowed, current_count, ttl = run_check()

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise HTTPException(
            status_code=429,
            detail="Too many requests from this IP, please try again later.",
            headers={"Retry-After": str(ttl)},
        )

    request.state.rate_limit_remaining = limit - current_count
    request.state.rate_limit_limit = limit
    request.state.rate_limit_reset = int(time.time()) + ttl


def create_rate_limiter(
    limit: int = RATE_LIMIT_MAX_REQUESTS,
    window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        login_limiter = create_rate_limiter(limit=10, window_seconds=900, key_prefix="login")

        @router.post("/login", dependencies=[Depends(login_limiter)])
        async def login(...):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip)

    return rate_limiter
