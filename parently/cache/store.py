"""
Key-value store abstraction.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production. Values are strings; TTLs are seconds.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis

from parently.core.logging_config import get_logger

logger = get_logger(__name__)

# Seconds between sweeps of expired in-memory entries
DEFAULT_CLEANUP_INTERVAL = 60.0


class KeyValueStore(Protocol):
    """Minimal interface the cache needs from a key-value backend."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    def delete_prefix(self, prefix: str) -> int:
        ...


class InMemoryKeyValueStore:
    """
    Dictionary-backed store for tests and single-process deployments.

    Reads drop their own expired key. Writes also sweep every expired key
    once per `cleanup_interval` seconds, so keys that are never read again
    (one-off IPs, old plan dates, message hashes) do not pile up.
    """

    def __init__(
        self,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._items: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.RLock()
        self._clock = clock
        self.cleanup_interval = cleanup_interval
        self._last_cleanup = clock()

    def __len__(self) -> int:
        return len(self._items)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at <= self._clock():
                del self._items[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)
            self._items[key] = (value, now + ttl_seconds)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [k for k in self._items if k.startswith(prefix)]
            for key in keys:
                del self._items[key]
            return len(keys)

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, (_, expires_at) in self._items.items() if expires_at <= now]
            for key in expired:
                del self._items[key]
            self._last_cleanup = now
            return len(expired)

    def _maybe_cleanup(self, now: float) -> None:
        if now - self._last_cleanup < self.cleanup_interval:
            return
        removed = self.purge_expired()
        logger.debug(f"Cache sweep: {removed} expired, {len(self._items)} live")

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self._items.clear()


class RedisKeyValueStore:
    """Redis-backed store using SET with EX and SCAN for prefix deletes."""

    def __init__(self, url: str):
        self.url = url
        self.client = redis.Redis.from_url(url, decode_responses=True)
        logger.info(f"Redis cache initialized: {url.split('@')[-1]}")

    def get(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.client.set(key, value, ex=max(1, int(ttl_seconds)))

    def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        for key in self.client.scan_iter(match=f"{prefix}*", count=100):
            deleted += self.client.delete(key)
        return deleted


_store: KeyValueStore | None = None


def get_cache_store() -> KeyValueStore:
    """Return a singleton store so cached state persists across requests."""
    global _store
    if _store is not None:
        return _store

    from parently.core.config import get_settings
    settings = get_settings()
    if settings.redis_url:
        _store = RedisKeyValueStore(settings.redis_url)
    else:
        logger.warning("REDIS_URL not set; using in-memory cache store")
        _store = InMemoryKeyValueStore()
    return _store
