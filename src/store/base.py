# src/store/base.py
from __future__ import annotations

import json
import threading
import time
from typing import Any, Protocol, runtime_checkable

from src.exceptions import StoreError


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Minimal contract shared by the rate limiter and the response cache.

    - load(key) returns the stored JSON value, or None when absent/expired.
    - save(key, value, ttl) replaces the entry as a whole; readers see either
      the old value or the new one, never a partial write.

    Implementations raise StoreError when the backend is unavailable.
    """

    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, value: Any, ttl: float) -> None: ...


def _now() -> float:
    # Wall clock; tests monkeypatch time.time()
    return time.time()


def dumps(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"Value is not JSON-serializable: {exc}") from exc


def loads(raw: str | bytes | None) -> Any | None:
    if raw is None:
        return None
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)
    except ValueError as exc:
        raise StoreError(f"Stored value is not valid JSON: {exc}") from exc


class MemoryStore:
    """
    In-process store with per-key expiry.

    Values are kept as serialized JSON so every load hands out a fresh copy;
    callers can never mutate what another request reads.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[float, str]] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> Any | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires_at, raw = item
            if expires_at <= _now():
                del self._data[key]
                return None
        return loads(raw)

    def save(self, key: str, value: Any, ttl: float) -> None:
        raw = dumps(value)
        expires_at = _now() + float(ttl)
        with self._lock:
            self._data[key] = (expires_at, raw)

    def __len__(self) -> int:
        now = _now()
        with self._lock:
            return sum(1 for expires_at, _ in self._data.values() if expires_at > now)


__all__ = ["KeyValueStore", "MemoryStore", "dumps", "loads"]
