"""
Rate Limiter - Control request frequency per user or client.

Fixed-window counters stored in the key-value cache, one window per
(identifier, bucket). This prevents abuse and caps LLM spend.

The read-modify-write is not atomic. Two concurrent requests may both
read the same count; that slack is accepted.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from parently.cache.service import CacheService
from parently.core.exceptions import RateLimitExceeded
from parently.core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    """Window length, request budget and the bucket name used in cache keys."""
    window_seconds: int
    max_requests: int
    endpoint: str


@dataclass(frozen=True)
class RateLimitInfo:
    limit: int
    remaining: int
    reset_ms: int


RATE_LIMITS: Dict[str, RateLimitConfig] = {
    # Chat endpoints - more restrictive
    "chat": RateLimitConfig(window_seconds=60, max_requests=10, endpoint="chat"),
    "checkin": RateLimitConfig(window_seconds=60, max_requests=5, endpoint="checkin"),
    "plan": RateLimitConfig(window_seconds=5 * 60, max_requests=3, endpoint="plan"),
    # Insights generation - most restrictive
    "insights": RateLimitConfig(window_seconds=10 * 60, max_requests=2, endpoint="insights"),
    "general": RateLimitConfig(window_seconds=60, max_requests=30, endpoint="general"),
}


class RateLimiter:
    """
    Fixed window rate limiter backed by the cache.

    Example:
        >>> limiter = RateLimiter(CacheService(InMemoryKeyValueStore()))
        >>> limiter.apply("user-123", "chat")   # first of 10 per minute
        RateLimitInfo(limit=10, remaining=9, reset_ms=...)
    """

    def __init__(self, cache: CacheService, clock: Callable[[], float] = time.time):
        self.cache = cache
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def check_rate_limit(self, identifier: str, config: RateLimitConfig) -> bool:
        """
        Count this request against the window.

        Returns:
            True if the request is allowed, False if the window is exhausted
        """
        now = self._now_ms()
        window_ms = config.window_seconds * 1000
        data = self.cache.get_rate_limit(identifier, config.endpoint)

        if not data or data.get("timestamp", 0) <= now - window_ms:
            # First request in a fresh window
            self.cache.cache_rate_limit(
                identifier, config.endpoint, 1, now, config.window_seconds
            )
            return True

        count = int(data.get("count", 0))
        if count >= config.max_requests:
            return False

        window_start = int(data["timestamp"])
        ttl = max(1, math.ceil((window_start + window_ms - now) / 1000))
        self.cache.cache_rate_limit(
            identifier, config.endpoint, count + 1, window_start, ttl
        )
        return True

    def get_rate_limit_info(self, identifier: str, config: RateLimitConfig) -> RateLimitInfo:
        now = self._now_ms()
        window_ms = config.window_seconds * 1000
        data = self.cache.get_rate_limit(identifier, config.endpoint)

        if not data or data.get("timestamp", 0) <= now - window_ms:
            return RateLimitInfo(
                limit=config.max_requests,
                remaining=config.max_requests,
                reset_ms=now + window_ms,
            )

        return RateLimitInfo(
            limit=config.max_requests,
            remaining=max(0, config.max_requests - int(data.get("count", 0))),
            reset_ms=int(data["timestamp"]) + window_ms,
        )

    def apply(self, identifier: Optional[str], bucket: str) -> RateLimitInfo:
        """
        Enforce a named bucket for an identifier.

        Raises:
            RateLimitExceeded: when the window is exhausted
        """
        config = RATE_LIMITS.get(bucket)
        if config is None:
            raise ValueError(f"Unknown rate limit config: {bucket}")
        if not identifier:
            identifier = "anonymous"

        if not self.check_rate_limit(identifier, config):
            info = self.get_rate_limit_info(identifier, config)
            retry_after = max(1, math.ceil((info.reset_ms - self._now_ms()) / 1000))
            logger.warning(f"Rate limit exceeded for {identifier[:8]}... on '{bucket}'")
            raise RateLimitExceeded(retry_after=retry_after)

        return self.get_rate_limit_info(identifier, config)


_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the global rate limiter."""
    global _rate_limiter
    if _rate_limiter is None:
        from parently.cache.service import get_cache_service
        _rate_limiter = RateLimiter(get_cache_service())
    return _rate_limiter
