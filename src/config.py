from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name, str(default)).strip()
    try:
        return int(v)
    except ValueError as err:
        raise ValueError(f"Environment variable {name} must be an integer; got {v!r}") from err


def _getenv_float(name: str, default: float) -> float:
    v = os.getenv(name, str(default)).strip()
    try:
        return float(v)
    except ValueError as err:
        raise ValueError(f"Environment variable {name} must be a number; got {v!r}") from err


def _getenv_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip()


def _getenv_list_str(name: str, default_csv: str) -> list[str]:
    raw = os.getenv(name, default_csv).strip()
    out: list[str] = []
    for tok in (t.strip() for t in raw.split(",")):
        if tok:
            out.append(tok)
    return out


def _getenv_bool(name: str, default: bool) -> bool:
    """
    Read a loosely-typed boolean from the environment.

    Treats "1", "true", "yes", "on" (case-insensitive) as True;
    "0", "false", "no", "off", "" as False. If unset, returns default.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off", ""}:
        return False
    # Fallback: any other non-empty value -> True
    return True


# Load .env from project root if present
ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env", override=False)

BOT_NAME = "pLBOT-API"
DEFAULT_USER_AGENT = f"{BOT_NAME}/2.0"


@dataclass(frozen=True)
class Settings:
    # admin auth / hardening
    ADMIN_API_KEY: str = _getenv_str("ADMIN_API_KEY", "")
    ADMIN_ALLOWED_IPS: list[str] = field(
        default_factory=lambda: _getenv_list_str("ADMIN_ALLOWED_IPS", "")
    )
    LOG_LEVEL: str = _getenv_str("LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class RateLimitConfig:
    limit: int
    window_sec: int
    fail_open: bool


@dataclass(frozen=True)
class CacheConfig:
    enabled: bool
    ttl_seconds: int
    timezone: str


@dataclass(frozen=True)
class StoreConfig:
    backend: str  # "memory" | "redis"
    redis_url: str


@dataclass(frozen=True)
class FetchConfig:
    user_agent: str
    timeout_sec: float
    connect_timeout_sec: float
    max_redirects: int
    max_retries: int
    retry_base_seconds: float


@dataclass(frozen=True)
class StatsConfig:
    enabled: bool
    path: str


@dataclass(frozen=True)
class AppConfig:
    rate: RateLimitConfig
    cache: CacheConfig
    store: StoreConfig
    fetch: FetchConfig
    stats: StatsConfig


def load_settings() -> AppConfig:
    """
    Build the structured config from the environment.

    Values are re-read on every call, so tests can monkeypatch env vars and
    call this again instead of reloading the module.
    """
    rate = RateLimitConfig(
        limit=_getenv_int("RATE_LIMIT_REQUESTS", 100),
        window_sec=_getenv_int("RATE_LIMIT_WINDOW_SEC", 60),
        fail_open=_getenv_bool("RATE_LIMIT_FAIL_OPEN", True),
    )
    if rate.limit < 1 or rate.window_sec < 1:
        raise ValueError("RATE_LIMIT_REQUESTS and RATE_LIMIT_WINDOW_SEC must be positive")

    cache = CacheConfig(
        enabled=_getenv_bool("CACHE_ENABLED", True),
        ttl_seconds=_getenv_int("CACHE_TTL_SECONDS", 86400),
        timezone=_getenv_str("CACHE_TIMEZONE", ""),
    )
    store = StoreConfig(
        backend=_getenv_str("STORE_BACKEND", "memory").lower(),
        redis_url=_getenv_str("REDIS_URL", "redis://127.0.0.1:6379/0"),
    )
    if store.backend not in {"memory", "redis"}:
        raise ValueError(f"STORE_BACKEND must be 'memory' or 'redis'; got {store.backend!r}")

    fetch = FetchConfig(
        user_agent=_getenv_str("FETCH_USER_AGENT", DEFAULT_USER_AGENT),
        timeout_sec=_getenv_float("FETCH_TIMEOUT_SEC", 10.0),
        connect_timeout_sec=_getenv_float("FETCH_CONNECT_TIMEOUT_SEC", 5.0),
        max_redirects=_getenv_int("FETCH_MAX_REDIRECTS", 5),
        max_retries=_getenv_int("FETCH_MAX_RETRIES", 1),
        retry_base_seconds=_getenv_float("FETCH_RETRY_BASE_SECONDS", 0.5),
    )
    stats = StatsConfig(
        enabled=_getenv_bool("STATS_ENABLED", True),
        path=_getenv_str("STATS_FILE", str(ROOT / "temp" / "stats.json")),
    )
    return AppConfig(rate=rate, cache=cache, store=store, fetch=fetch, stats=stats)


settings: Settings = Settings()

__all__ = [
    "DEFAULT_USER_AGENT",
    "ROOT",
    "Settings",
    "RateLimitConfig",
    "CacheConfig",
    "StoreConfig",
    "FetchConfig",
    "StatsConfig",
    "AppConfig",
    "load_settings",
    "settings",
]
