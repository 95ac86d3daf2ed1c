# ruff: noqa: E402
# tests/conftest.py
from __future__ import annotations

import sys
import types
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

# Ensure project root importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient

from src.api.app import create_app
from src.config import AppConfig, FetchConfig, RateLimitConfig, load_settings
from src.fetch import FetcherClient
from src.stats import StatsService
from src.store import MemoryStore, get_redis, get_store

# Frozen "now" for tests that need a stable window (2023-11-14 22:13:20 UTC)
EPOCH0 = 1_700_000_000


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """
    Autouse: keep process-wide singletons and on-disk stats out of the repo.
    """
    monkeypatch.setenv("STATS_FILE", str(tmp_path / "stats.json"))
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.delenv("CACHE_TIMEZONE", raising=False)
    get_store.cache_clear()
    get_redis.cache_clear()
    yield
    get_store.cache_clear()
    get_redis.cache_clear()


@pytest.fixture
def fake_clock(monkeypatch: pytest.MonkeyPatch) -> types.SimpleNamespace:
    """
    Freeze time.time() and make time.sleep() advance it instead of blocking.

    Exposes:
      now() -> float
      advance(dt)
      slept() -> float   total seconds "slept"
    """
    t = {"now": float(EPOCH0), "slept": 0.0}

    def sleep(dt: float) -> None:
        dt = float(dt)
        if dt <= 0:
            return
        t["slept"] += dt
        t["now"] += dt

    monkeypatch.setattr("time.time", lambda: t["now"])
    monkeypatch.setattr("time.sleep", sleep)

    return types.SimpleNamespace(
        now=lambda: t["now"],
        advance=lambda dt: t.__setitem__("now", t["now"] + float(dt)),
        slept=lambda: t["slept"],
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fetch_config() -> FetchConfig:
    return FetchConfig(
        user_agent="pLBOT-API/test",
        timeout_sec=2.0,
        connect_timeout_sec=1.0,
        max_redirects=3,
        max_retries=0,
        retry_base_seconds=0.0,
    )


@pytest.fixture
def stats_service(tmp_path: Path) -> StatsService:
    return StatsService(tmp_path / "stats.json")


@pytest.fixture
def make_client(
    store: MemoryStore,
    fetch_config: FetchConfig,
    stats_service: StatsService,
) -> Callable[..., TestClient]:
    """
    Build a TestClient around a fresh app sharing the test store.

    Keyword overrides:
      limit / window_sec / fail_open  -> rate limiter settings
      store / stats                   -> replace the injected collaborators
      raise_server_exceptions         -> forwarded to TestClient
    """

    def _make(
        *,
        limit: int = 100,
        window_sec: int = 60,
        fail_open: bool = True,
        raise_server_exceptions: bool = True,
        **overrides,
    ) -> TestClient:
        base = load_settings()
        cfg = AppConfig(
            rate=RateLimitConfig(limit=limit, window_sec=window_sec, fail_open=fail_open),
            cache=base.cache,
            store=base.store,
            fetch=fetch_config,
            stats=base.stats,
        )
        app = create_app(
            store=overrides.get("store", store),
            fetcher=FetcherClient(config=fetch_config),
            stats=overrides.get("stats", stats_service),
            config=cfg,
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make
