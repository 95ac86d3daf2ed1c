# src/store/redis_conn.py
from __future__ import annotations

import math
from functools import lru_cache
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from src.config import load_settings
from src.exceptions import StoreError

from .base import dumps, loads


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    url = load_settings().store.redis_url
    # Raw bytes; values are decoded explicitly in RedisStore.load().
    return Redis.from_url(url, decode_responses=False)


class RedisStore:
    """
    Networked store backed by Redis GET / SETEX.

    SETEX writes value and TTL in one command, so a reader never sees a
    half-written entry.
    """

    def __init__(self, client: Any | None = None) -> None:
        self._client = client if client is not None else get_redis()

    def load(self, key: str) -> Any | None:
        try:
            raw = self._client.get(key)
        except RedisError as exc:
            raise StoreError(f"Redis GET failed for {key!r}: {exc}") from exc
        return loads(raw)

    def save(self, key: str, value: Any, ttl: float) -> None:
        payload = dumps(value)
        # SETEX needs a whole number of seconds >= 1
        seconds = max(1, int(math.ceil(float(ttl))))
        try:
            self._client.setex(key, seconds, payload)
        except RedisError as exc:
            raise StoreError(f"Redis SETEX failed for {key!r}: {exc}") from exc


__all__ = ["RedisStore", "get_redis"]
