# src/cache/response_cache.py
from __future__ import annotations

import datetime as dt
import logging
import re
from collections.abc import Callable, Mapping
from typing import Any, TypeVar
from zoneinfo import ZoneInfo

from unidecode import unidecode

from src.config import CacheConfig, load_settings
from src.exceptions import StoreError
from src.store import KeyValueStore

log = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_PREFIX = "response_cache:"

# Stored shape is {"value": payload} so that null/empty payloads can be
# cached and still be told apart from a miss.
_ENVELOPE = "value"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_param(value: Any) -> str:
    """
    Slug-case a single key component.

    "Štír" -> "stir", "  Ústí nad Labem " -> "usti-nad-labem", None -> "".
    """
    if value is None:
        return ""
    text = unidecode(str(value)).lower()
    return _NON_ALNUM_RE.sub("-", text).strip("-")


def _normalize_params(params: Any) -> str:
    """
    Normalize request parameters into one stable key fragment.

    Mappings are ordered by key so {"a": 1, "b": 2} and {"b": 2, "a": 1}
    collide; sequences keep their order; scalars are slugged as-is.
    """
    if params is None:
        return ""
    if isinstance(params, Mapping):
        return "_".join(normalize_param(params[k]) for k in sorted(params, key=str))
    if isinstance(params, (list, tuple)):
        return "_".join(normalize_param(p) for p in params)
    return normalize_param(params)


def today(tz_name: str | None = None) -> dt.date:
    """Current calendar day in CACHE_TIMEZONE (server local time when unset)."""
    if tz_name is None:
        tz_name = load_settings().cache.timezone
    if tz_name:
        return dt.datetime.now(ZoneInfo(tz_name)).date()
    return dt.date.today()


def compute_key(
    route: str,
    action: str | None,
    params: Any = None,
    day: dt.date | None = None,
) -> str:
    """
    Build the cache key "{route}{action}{params}{YYYY-MM-DD}".

    Every component is case- and whitespace-normalized, so equivalent
    requests land on the same key and a new calendar day starts a new one.
    """
    if day is None:
        day = today()
    return (
        f"{normalize_param(route)}"
        f"{normalize_param(action)}"
        f"{_normalize_params(params)}"
        f"{day.isoformat()}"
    )


class ResponseCache:
    """
    Memoizes expensive upstream work in the shared key-value store.

    Cache policy:
      - Hit: the stored value is returned unchanged; compute() is not called.
      - Miss: compute() runs, its result (even an empty one) is stored with
        the given TTL and returned.
      - compute() raising: nothing is written, the exception propagates.
      - Store errors never fail the request: a read error is a miss, a write
        error is logged and the computed value is still returned.

    Concurrent misses on one key may both compute; the last write wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        config: CacheConfig | None = None,
    ) -> None:
        cfg = config or load_settings().cache
        self.store = store
        self.enabled = cfg.enabled
        self.default_ttl = cfg.ttl_seconds
        self.timezone = cfg.timezone

    def key(self, route: str, action: str | None, params: Any = None) -> str:
        return compute_key(route, action, params, today(self.timezone))

    def load(self, key: str) -> tuple[bool, Any]:
        """Return (hit, value). Store errors are reported as a miss."""
        try:
            cached = self.store.load(CACHE_PREFIX + key)
        except StoreError:
            log.warning("Cache read failed for %s; treating as miss", key, exc_info=True)
            return False, None
        if isinstance(cached, dict) and _ENVELOPE in cached:
            return True, cached[_ENVELOPE]
        return False, None

    def save(self, key: str, value: Any, ttl: float) -> None:
        try:
            self.store.save(CACHE_PREFIX + key, {_ENVELOPE: value}, ttl)
        except StoreError:
            log.warning("Cache write failed for %s", key, exc_info=True)

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], T],
        ttl: float | None = None,
    ) -> T:
        effective_ttl = self.default_ttl if ttl is None else ttl
        if not self.enabled or effective_ttl <= 0:
            return compute()

        hit, value = self.load(key)
        if hit:
            log.debug("Cache hit for %s", key)
            return value

        value = compute()
        self.save(key, value, effective_ttl)
        return value


__all__ = [
    "CACHE_PREFIX",
    "ResponseCache",
    "compute_key",
    "normalize_param",
    "today",
]
