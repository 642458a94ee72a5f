"""
One-time code store for the admin first-login flow

Codes are keyed by admin id and expire on their own. RedisOTPStore is the
production backend (survives restarts, shared by every API instance);
MemoryOTPStore is for local development and tests.
"""

import json
import logging
import time
from threading import Lock
from typing import Optional

import redis

from . import config
from .rate_limiter import get_redis_client
from .security_utils import constant_time_compare

logger = logging.getLogger(__name__)


class OTPStore:
    """Interface for storing admin one-time codes"""

    max_attempts: int = 5

    def save(self, admin_id: int, code: str, ttl_seconds: int) -> None:
        raise NotImplementedError

    def verify(self, admin_id: int, code: str) -> bool:
        """Check ``code`` and consume it on success. Wrong guesses count towards max_attempts."""
        raise NotImplementedError

    def delete(self, admin_id: int) -> None:
        raise NotImplementedError

    def exists(self, admin_id: int) -> bool:
        raise NotImplementedError


class MemoryOTPStore(OTPStore):
    """Process-local store. Single instance only; codes are lost on restart."""

    def __init__(self, max_attempts: int = 5):
        self.max_attempts = max_attempts
        # {admin_id: {"code": str, "expires_at": float, "attempts": int}}
        self._entries: dict[int, dict] = {}
        self._lock = Lock()

    def _live_entry(self, admin_id: int) -> Optional[dict]:
        entry = self._entries.get(admin_id)
        if entry and time.time() >= entry["expires_at"]:
            del self._entries[admin_id]
            return None
        return entry

    def save(self, admin_id: int, code: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[admin_id] = {"code": code, "expires_at": time.time() + ttl_seconds, "attempts": 0}

    def verify(self, admin_id: int, code: str) -> bool:
        with self._lock:
            entry = self._live_entry(admin_id)
            if not entry:
                return False
            if constant_time_compare(entry["code"], code):
                del self._entries[admin_id]
                return True
            entry["attempts"] += 1
            if entry["attempts"] >= self.max_attempts:
                logger.warning(f"⚠️ OTP for admin {admin_id} invalidated after {entry['attempts']} failed attempts")
                del self._entries[admin_id]
            return False

    def delete(self, admin_id: int) -> None:
        with self._lock:
            self._entries.pop(admin_id, None)

    def exists(self, admin_id: int) -> bool:
        with self._lock:
            return self._live_entry(admin_id) is not None


class RedisOTPStore(OTPStore):
    """Redis-backed store using SETEX so codes expire server-side"""

    KEY_PREFIX = "cleanpro:admin_otp:"

    def __init__(self, client: Optional[redis.Redis] = None, max_attempts: int = 5):
        self.max_attempts = max_attempts
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = get_redis_client()
        return self._client

    def _key(self, admin_id: int) -> str:
        return f"{self.KEY_PREFIX}{admin_id}"

    def save(self, admin_id: int, code: str, ttl_seconds: int) -> None:
        self.client.setex(self._key(admin_id), ttl_seconds, json.dumps({"code": code, "attempts": 0}))

    def verify(self, admin_id: int, code: str) -> bool:
        key = self._key(admin_id)
        raw = self.client.get(key)
        if not raw:
            return False

        entry = json.loads(raw)
        if constant_time_compare(entry["code"], code):
            # Single use: only the caller whose DELETE removes the key wins
            return bool(self.client.delete(key))

        entry["attempts"] += 1
        if entry["attempts"] >= self.max_attempts:
            logger.warning(f"⚠️ OTP for admin {admin_id} invalidated after {entry['attempts']} failed attempts")
            self.client.delete(key)
        else:
            ttl = self.client.ttl(key)
            if ttl and ttl > 0:
                self.client.setex(key, ttl, json.dumps(entry))
        return False

    def delete(self, admin_id: int) -> None:
        self.client.delete(self._key(admin_id))

    def exists(self, admin_id: int) -> bool:
        return bool(self.client.exists(self._key(admin_id)))


_store: Optional[OTPStore] = None


def get_otp_store() -> OTPStore:
    """Process-wide OTP store chosen by OTP_STORE_BACKEND"""
    global _store
    if _store is None:
        if config.OTP_STORE_BACKEND == "memory":
            logger.warning("⚠️ Using in-memory OTP store - codes will not survive a restart")
            _store = MemoryOTPStore(max_attempts=config.ADMIN_OTP_MAX_ATTEMPTS)
        else:
            _store = RedisOTPStore(max_attempts=config.ADMIN_OTP_MAX_ATTEMPTS)
    return _store
