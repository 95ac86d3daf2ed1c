# tests/test_config.py
from __future__ import annotations

import importlib

import pytest

import src.config as config_module
from src.config import (
    DEFAULT_USER_AGENT,
    _getenv_bool,
    _getenv_int,
    _getenv_list_str,
    load_settings,
    settings,
)


def test_defaults(monkeypatch) -> None:
    for name in (
        "RATE_LIMIT_REQUESTS",
        "RATE_LIMIT_WINDOW_SEC",
        "RATE_LIMIT_FAIL_OPEN",
        "CACHE_TTL_SECONDS",
        "FETCH_USER_AGENT",
        "FETCH_MAX_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)

    cfg = load_settings()
    assert cfg.rate.limit == 100
    assert cfg.rate.window_sec == 60
    assert cfg.rate.fail_open is True
    assert cfg.cache.ttl_seconds == 86400
    assert cfg.store.backend == "memory"
    assert cfg.fetch.user_agent == DEFAULT_USER_AGENT == "pLBOT-API/2.0"
    assert cfg.fetch.max_retries == 1


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_REQUESTS", "5")
    monkeypatch.setenv("RATE_LIMIT_FAIL_OPEN", "off")
    monkeypatch.setenv("CACHE_TIMEZONE", "Europe/Prague")
    monkeypatch.setenv("STORE_BACKEND", "REDIS")

    cfg = load_settings()
    assert cfg.rate.limit == 5
    assert cfg.rate.fail_open is False
    assert cfg.cache.timezone == "Europe/Prague"
    assert cfg.store.backend == "redis"


def test_invalid_values_are_rejected(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SEC", "0")
    with pytest.raises(ValueError):
        load_settings()

    monkeypatch.setenv("RATE_LIMIT_WINDOW_SEC", "60")
    monkeypatch.setenv("STORE_BACKEND", "memcached")
    with pytest.raises(ValueError):
        load_settings()

    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("RATE_LIMIT_REQUESTS", "lots")
    with pytest.raises(ValueError):
        load_settings()


def test_env_helpers(monkeypatch) -> None:
    monkeypatch.setenv("X_INT", " 7 ")
    monkeypatch.setenv("X_LIST", "10.0.0.1, ,10.0.0.2")
    monkeypatch.setenv("X_BOOL", "Yes")
    monkeypatch.delenv("X_MISSING", raising=False)

    assert _getenv_int("X_INT", 1) == 7
    assert _getenv_list_str("X_LIST", "") == ["10.0.0.1", "10.0.0.2"]
    assert _getenv_bool("X_BOOL", False) is True
    assert _getenv_bool("X_MISSING", True) is True


def test_settings_loads_defaults() -> None:
    assert isinstance(settings.ADMIN_ALLOWED_IPS, list)
    assert settings.LOG_LEVEL == settings.LOG_LEVEL.upper()


def test_bad_env_value_fails_at_load_not_at_import(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SEC", "0")
    try:
        reloaded = importlib.reload(config_module)
        with pytest.raises(ValueError):
            reloaded.load_settings()
    finally:
        monkeypatch.delenv("RATE_LIMIT_WINDOW_SEC")
        importlib.reload(config_module)
