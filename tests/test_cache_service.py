import json
from unittest.mock import MagicMock, patch

from redis.exceptions import RedisError

from parently.cache.service import AI_RESPONSE_TTL, INSIGHTS_TTL, PLAN_TTL, CacheService
from parently.cache.store import InMemoryKeyValueStore, RedisKeyValueStore


class RecordingStore(InMemoryKeyValueStore):
    def __init__(self):
        super().__init__()
        self.ttls = {}

    def set(self, key, value, ttl_seconds):
        self.ttls[key] = ttl_seconds
        super().set(key, value, ttl_seconds)


def test_envelope_and_key_layout():
    store = RecordingStore()
    cache = CacheService(store)

    cache.cache_daily_plan("user-1", "2024-05-01", {"plan": "Rest"})

    raw = json.loads(store.get("plan:user-1:2024-05-01"))
    assert raw["data"] == {"plan": "Rest"}
    assert isinstance(raw["timestamp"], int)
    assert cache.get_cached_daily_plan("user-1", "2024-05-01") == {"plan": "Rest"}


def test_ttls_per_kind():
    store = RecordingStore()
    cache = CacheService(store)

    cache.cache_daily_plan("u", "2024-05-01", {})
    cache.cache_ai_response("u", "abc", {})
    cache.cache_child_insights("u", "c", {})
    cache.set("misc:u", 1)

    assert store.ttls == {
        "plan:u:2024-05-01": PLAN_TTL,
        "ai_response:u:abc": AI_RESPONSE_TTL,
        "insights:u:c": INSIGHTS_TTL,
        "misc:u": 3600,
    }


def test_message_hash():
    digest = CacheService.generate_message_hash("How do I save?")

    assert len(digest) == 32
    assert digest == CacheService.generate_message_hash("How do I save?")
    assert digest != CacheService.generate_message_hash("How do I save!")


def test_clear_user_cache_only_touches_that_user():
    cache = CacheService(InMemoryKeyValueStore())
    cache.cache_daily_plan("user-1", "2024-05-01", {"plan": "a"})
    cache.cache_ai_response("user-1", "h", {"response": "b"})
    cache.cache_child_insights("user-1", "child-1", {"summary": "c"})
    cache.cache_daily_plan("user-10", "2024-05-01", {"plan": "other"})
    cache.cache_rate_limit("user-1", "chat", 1, 0, 60)

    assert cache.clear_user_cache("user-1") == 3

    assert cache.get_cached_daily_plan("user-1", "2024-05-01") is None
    assert cache.get_cached_ai_response("user-1", "h") is None
    assert cache.get_cached_child_insights("user-1", "child-1") is None
    assert cache.get_cached_daily_plan("user-10", "2024-05-01") == {"plan": "other"}
    assert cache.get_rate_limit("user-1", "chat") is not None


def test_store_failures_are_misses():
    store = MagicMock()
    store.get.side_effect = RedisError("down")
    store.set.side_effect = RedisError("down")
    cache = CacheService(store)

    cache.cache_ai_response("u", "h", {"response": "x"})
    assert cache.get_cached_ai_response("u", "h") is None


def test_corrupt_entry_is_a_miss():
    store = InMemoryKeyValueStore()
    store.set("plan:u:2024-05-01", "{not json", 60)

    assert CacheService(store).get_cached_daily_plan("u", "2024-05-01") is None


def test_unserialisable_value_is_not_stored():
    store = InMemoryKeyValueStore()
    cache = CacheService(store)

    cache.set("bad:u", object())
    assert store.get("bad:u") is None


# =============================================================================
# Stores
# =============================================================================

class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_in_memory_store_sweeps_keys_that_are_never_read_again():
    clock = FakeClock()
    store = InMemoryKeyValueStore(cleanup_interval=60, clock=clock)
    for i in range(1000):
        store.set(f"rate_limit:10.0.0.{i}:general", "{}", 0)
    store.set("plan:u:2024-05-01", "{}", 3600)

    clock.now += 61
    store.set("plan:u:2024-05-02", "{}", 3600)

    assert len(store) == 2
    assert store.get("plan:u:2024-05-01") == "{}"


def test_in_memory_store_sweeps_at_most_once_per_interval():
    clock = FakeClock()
    store = InMemoryKeyValueStore(cleanup_interval=60, clock=clock)
    store.set("ai_response:u:h1", "{}", 5)

    clock.now += 10
    store.set("ai_response:u:h2", "{}", 5)
    assert len(store) == 2

    assert store.purge_expired() == 1
    assert len(store) == 1


def test_redis_store_commands():
    client = MagicMock()
    client.get.return_value = '{"data": 1}'
    client.scan_iter.return_value = iter(["plan:u:2024-05-01", "plan:u:2024-05-02"])
    client.delete.return_value = 1

    with patch("parently.cache.store.redis.Redis.from_url", return_value=client) as from_url:
        store = RedisKeyValueStore("redis://:secret@cache:6379/0")

    from_url.assert_called_once_with("redis://:secret@cache:6379/0", decode_responses=True)

    assert store.get("plan:u:2024-05-01") == '{"data": 1}'
    client.get.assert_called_once_with("plan:u:2024-05-01")

    store.set("ai_response:u:h", "{}", 1800)
    store.set("rate_limit:u:chat", "{}", 0)
    assert client.set.call_args_list[0].kwargs == {"ex": 1800}
    assert client.set.call_args_list[1].kwargs == {"ex": 1}

    assert store.delete_prefix("plan:u:") == 2
    client.scan_iter.assert_called_once_with(match="plan:u:*", count=100)
    assert client.delete.call_count == 2
