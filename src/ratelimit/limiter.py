# src/ratelimit/limiter.py
from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from src.config import RateLimitConfig, load_settings
from src.exceptions import StoreError
from src.store import KeyValueStore

log = logging.getLogger(__name__)

# ---- Keys / constants ----
RATE_KEY = "rate_limit:{digest}"

# Used when no forwarded header and no peer address can be resolved
UNKNOWN_CLIENT = "0.0.0.0"


# ---- Time helper ----
def _now_sec() -> int:
    return int(time.time())


# ---- Model ----
@dataclass
class ClientWindow:
    count: int
    reset_at: int  # unix seconds

    def expired(self, now: int) -> bool:
        return now > self.reset_at

    def to_dict(self) -> dict[str, int]:
        return {"count": self.count, "reset_time": self.reset_at}

    @classmethod
    def from_dict(cls, data: object) -> ClientWindow | None:
        if not isinstance(data, dict):
            return None
        try:
            return cls(count=int(data["count"]), reset_at=int(data["reset_time"]))
        except (KeyError, TypeError, ValueError):
            return None


@dataclass(frozen=True)
class Decision:
    admitted: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    degraded: bool = False

    def headers(self) -> dict[str, str]:
        """X-RateLimit-* headers; Retry-After is added only on rejection."""
        out = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if not self.admitted:
            out["Retry-After"] = str(self.retry_after)
        return out


# ---- Identity ----
def client_identity(headers: Mapping[str, str], peer: str | None) -> str:
    """
    Resolve the client IP: X-Forwarded-For (first hop), then X-Real-IP,
    then the transport peer, then UNKNOWN_CLIENT.

    `headers` must support case-insensitive lookup with lowercase names
    (starlette Headers or a plain dict with lowercase keys).
    """
    xff = headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if peer:
        return peer
    return UNKNOWN_CLIENT


def _window_key(identity: str) -> str:
    digest = hashlib.md5(identity.encode("utf-8")).hexdigest()
    return RATE_KEY.format(digest=digest)


# ---- Limiter ----
class RateLimiter:
    """
    Fixed-window limiter: at most `limit` admitted requests per `window_sec`
    for each client identity.

    The counter is read, updated and written back without a lock. Under heavy
    concurrency two requests may read the same count and undercount by one.
    A client can also land up to 2*limit requests in a short span straddling
    a window reset.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        limit: int | None = None,
        window_sec: int | None = None,
        fail_open: bool | None = None,
        config: RateLimitConfig | None = None,
    ) -> None:
        cfg = config or load_settings().rate
        self.store = store
        self.limit = int(limit if limit is not None else cfg.limit)
        self.window_sec = int(window_sec if window_sec is not None else cfg.window_sec)
        self.fail_open = cfg.fail_open if fail_open is None else bool(fail_open)

    def check(self, identity: str, now: float | None = None) -> Decision:
        now_i = _now_sec() if now is None else int(now)
        key = _window_key(identity)

        try:
            window = ClientWindow.from_dict(self.store.load(key))
        except StoreError:
            return self._degraded(identity, now_i)

        if window is None or window.expired(now_i):
            window = ClientWindow(count=1, reset_at=now_i + self.window_sec)
        else:
            window.count += 1

        try:
            self.store.save(key, window.to_dict(), self.window_sec)
        except StoreError:
            return self._degraded(identity, now_i)

        admitted = window.count <= self.limit
        if not admitted:
            log.info(
                "Rate limit exceeded for %s (%d/%d, resets at %d)",
                identity,
                window.count,
                self.limit,
                window.reset_at,
            )
        return Decision(
            admitted=admitted,
            limit=self.limit,
            remaining=max(0, self.limit - window.count) if admitted else 0,
            reset_at=window.reset_at,
            retry_after=max(0, window.reset_at - now_i),
        )

    def _degraded(self, identity: str, now: int) -> Decision:
        log.warning(
            "Rate limit store unavailable; failing %s for %s",
            "open" if self.fail_open else "closed",
            identity,
            exc_info=True,
        )
        reset_at = now + self.window_sec
        return Decision(
            admitted=self.fail_open,
            limit=self.limit,
            remaining=self.limit - 1 if self.fail_open else 0,
            reset_at=reset_at,
            retry_after=self.window_sec,
            degraded=True,
        )


__all__ = [
    "ClientWindow",
    "Decision",
    "RateLimiter",
    "client_identity",
    "UNKNOWN_CLIENT",
]
