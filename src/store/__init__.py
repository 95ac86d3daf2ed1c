# src/store/__init__.py
"""
Shared key-value store used by the rate limiter and the response cache.

Public API:
  - KeyValueStore: protocol (load/save with TTL)
  - MemoryStore: in-process implementation
  - RedisStore: Redis-backed implementation
  - get_store(): process-wide default chosen by STORE_BACKEND
"""

from __future__ import annotations

from functools import lru_cache

from src.config import load_settings

from .base import KeyValueStore, MemoryStore
from .redis_conn import RedisStore, get_redis


@lru_cache(maxsize=1)
def get_store() -> KeyValueStore:
    backend = load_settings().store.backend
    if backend == "redis":
        return RedisStore(get_redis())
    return MemoryStore()


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "get_redis",
    "get_store",
]
