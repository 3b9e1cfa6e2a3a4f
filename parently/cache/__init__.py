"""
Cache module - key-value caching for AI output and rate-limit windows.

- store.py   : Redis and in-memory key-value backends
- service.py : Typed cache helpers with per-kind TTLs
"""
from parently.cache.store import (
    KeyValueStore,
    InMemoryKeyValueStore,
    RedisKeyValueStore,
    get_cache_store,
)
from parently.cache.service import CacheService, get_cache_service

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "get_cache_store",
    "CacheService",
    "get_cache_service",
]
