"""
Cache Service - typed get/set helpers over the key-value store.

Every entry is a JSON envelope {"data": ..., "timestamp": <ms>} stored
under "prefix:identifier[:suffix]". A cache failure is logged and treated
as a miss; it never fails the request.
"""
import hashlib
import json
import time
from typing import Any, Dict, Optional

from redis.exceptions import RedisError

from parently.cache.store import KeyValueStore
from parently.core.logging_config import LoggerMixin

DEFAULT_TTL = 3600
PLAN_TTL = 24 * 3600
AI_RESPONSE_TTL = 30 * 60
INSIGHTS_TTL = 2 * 3600

# Prefixes holding per-user data; logout clears these
USER_PREFIXES = ("plan", "ai_response", "insights")


class CacheService(LoggerMixin):
    """
    Get/set wrapper with static TTLs per data kind.

    Example:
        >>> cache = CacheService(InMemoryKeyValueStore())
        >>> cache.cache_daily_plan("user-1", "2024-05-01", {"plan": "Rest"})
        >>> cache.get_cached_daily_plan("user-1", "2024-05-01")
        {'plan': 'Rest'}
    """

    def __init__(self, store: KeyValueStore, default_ttl: int = DEFAULT_TTL):
        self.store = store
        self.default_ttl = default_ttl

    @staticmethod
    def generate_key(prefix: str, identifier: str, suffix: Optional[str] = None) -> str:
        return f"{prefix}:{identifier}:{suffix}" if suffix else f"{prefix}:{identifier}"

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            serialized = json.dumps({
                "data": value,
                "timestamp": int(time.time() * 1000),
            })
            self.store.set(key, serialized, ttl or self.default_ttl)
        except (RedisError, TypeError, ValueError) as e:
            self.logger.error(f"Cache set error for {key}: {e}")

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.store.get(key)
            if not raw:
                return None
            return json.loads(raw).get("data")
        except (RedisError, ValueError, AttributeError) as e:
            self.logger.error(f"Cache get error for {key}: {e}")
            return None

    # ------------------------------------------------------------
    # Daily plans
    # ------------------------------------------------------------

    def cache_daily_plan(self, user_id: str, date: str, plan: Dict[str, Any]) -> None:
        self.set(self.generate_key("plan", user_id, date), plan, PLAN_TTL)

    def get_cached_daily_plan(self, user_id: str, date: str) -> Optional[Dict[str, Any]]:
        return self.get(self.generate_key("plan", user_id, date))

    # ------------------------------------------------------------
    # AI responses
    # ------------------------------------------------------------

    def cache_ai_response(self, user_id: str, message_hash: str, response: Dict[str, Any]) -> None:
        self.set(self.generate_key("ai_response", user_id, message_hash), response, AI_RESPONSE_TTL)

    def get_cached_ai_response(self, user_id: str, message_hash: str) -> Optional[Dict[str, Any]]:
        return self.get(self.generate_key("ai_response", user_id, message_hash))

    # ------------------------------------------------------------
    # Child insights
    # ------------------------------------------------------------

    def cache_child_insights(self, parent_id: str, child_id: str, insights: Dict[str, Any]) -> None:
        self.set(self.generate_key("insights", parent_id, child_id), insights, INSIGHTS_TTL)

    def get_cached_child_insights(self, parent_id: str, child_id: str) -> Optional[Dict[str, Any]]:
        return self.get(self.generate_key("insights", parent_id, child_id))

    # ------------------------------------------------------------
    # Rate limit windows
    # ------------------------------------------------------------

    def cache_rate_limit(
        self, identifier: str, endpoint: str, count: int, window_start_ms: int, ttl: int
    ) -> None:
        key = self.generate_key("rate_limit", identifier, endpoint)
        self.set(key, {"count": count, "timestamp": window_start_ms}, ttl)

    def get_rate_limit(self, identifier: str, endpoint: str) -> Optional[Dict[str, int]]:
        return self.get(self.generate_key("rate_limit", identifier, endpoint))

    # ------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------

    def clear_user_cache(self, user_id: str) -> int:
        """Drop every per-user entry (plans, AI responses, insights)."""
        removed = 0
        for prefix in USER_PREFIXES:
            try:
                removed += self.store.delete_prefix(f"{prefix}:{user_id}:")
            except RedisError as e:
                self.logger.error(f"Cache clear error for {prefix}: {e}")
        self.logger.info(f"Cleared {removed} cache entries for user {user_id[:8]}...")
        return removed

    @staticmethod
    def generate_message_hash(message: str) -> str:
        return hashlib.sha256(message.encode("utf-8")).hexdigest()[:32]


_cache_service: CacheService | None = None


def get_cache_service() -> CacheService:
    """Get or create the global cache service."""
    global _cache_service
    if _cache_service is None:
        from parently.cache.store import get_cache_store
        _cache_service = CacheService(get_cache_store())
    return _cache_service
