"""
Rate limiting for the authentication endpoints
Counters live in process memory and are periodically written through to Redis,
so several API instances converge on one count without a Redis round trip per request.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from . import config

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# {key: {"count": int, "reset_time": int, "last_sync": int}}
_windows: dict[str, dict] = {}
_windows_lock = Lock()

SYNC_INTERVAL = 10  # seconds between write-through to Redis
CLEANUP_INTERVAL = 60
_last_cleanup = 0


def get_redis_client() -> redis.Redis:
    """
    Get or create the shared Redis client (REDIS_URL, or REDIS_HOST/REDIS_PORT/...)
    Raises when Redis cannot be reached.
    """
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        options = {
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 10,
            "retry_on_timeout": True,
            "health_check_interval": 30,
        }

        if redis_url:
            masked = redis_url.split("@")[-1] if "@" in redis_url else "****"
            logger.info(f"📡 Connecting to Redis via URL (…@{masked})")
            client = redis.from_url(redis_url, **options)
        else:
            host = os.getenv("REDIS_HOST", "localhost")
            port = int(os.getenv("REDIS_PORT", "6379"))
            logger.info(f"📡 Connecting to Redis at {host}:{port}")
            client = redis.Redis(
                host=host,
                port=port,
                password=os.getenv("REDIS_PASSWORD") or None,
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                **options,
            )

        try:
            client.ping()
        except redis.RedisError as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            raise
        logger.info("✅ Redis connected")
        redis_client = client

    return redis_client


def _cleanup_expired(now: int) -> None:
    global _last_cleanup
    if now - _last_cleanup < CLEANUP_INTERVAL:
        return

    expired = [k for k, v in _windows.items() if now >= v["reset_time"]]
    for k in expired:
        del _windows[k]
    if expired:
        logger.debug(f"🧹 Cleaned up {len(expired)} expired rate limit windows")
    _last_cleanup = now


def check_rate_limit(key: str, limit: int, window_seconds: int, client: redis.Redis) -> tuple[bool, int, int]:
    """Count one request against ``key``.

    Returns:
        Tuple of (is_allowed, current_count, seconds_until_reset)
    """
    now = int(time.time())

    with _windows_lock:
        _cleanup_expired(now)

        entry = _windows.get(key)
        if entry is None:
            entry = {"count": 0, "reset_time": now + window_seconds, "last_sync": now}
            try:
                stored = client.get(key)
                ttl = client.ttl(key)
                if stored and ttl > 0:
                    entry = {"count": int(stored), "reset_time": now + ttl, "last_sync": now}
            except redis.RedisError as e:
                logger.warning(f"⚠️ Could not read {key} from Redis, counting in memory: {e}")
            _windows[key] = entry

        if now >= entry["reset_time"]:
            entry.update(count=0, reset_time=now + window_seconds, last_sync=0)

        allowed = entry["count"] < limit
        if allowed:
            entry["count"] += 1

        if now - entry["last_sync"] >= SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=max(1, entry["reset_time"] - now))
                entry["last_sync"] = now
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync {key} to Redis: {e}")

        return allowed, entry["count"], max(0, entry["reset_time"] - now)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(request: Request, limit: int, window_seconds: int, key_prefix: str):
    """
    Enforce ``limit`` requests per ``window_seconds`` per client IP.
    Fails closed (503) when Redis is unreachable.
    """
    if not config.RATE_LIMIT_ENABLED:
        return

    try:
        client = get_redis_client()
    except redis.RedisError as e:
        logger.warning("🔒 Denying request: rate limiting backend unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e

    key = f"cleanpro:rl:{key_prefix}:{_client_ip(request)}"
    allowed, count, retry_after = check_rate_limit(key, limit, window_seconds, client)

    if not allowed:
        logger.warning(f"🚫 Rate limit exceeded for {key} ({count}/{limit})")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many requests. Please try again in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        login_rate_limiter = create_rate_limiter(limit=10, window_seconds=900, key_prefix="login")

        @router.post("/login", dependencies=[Depends(login_rate_limiter)])
    """

    async def rate_limiter(request: Request):
        await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter


login_rate_limiter = create_rate_limiter(limit=10, window_seconds=900, key_prefix="login")
register_rate_limiter = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")
password_reset_rate_limiter = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="forgot_password")
first_login_rate_limiter = create_rate_limiter(limit=10, window_seconds=900, key_prefix="admin_first_login")
