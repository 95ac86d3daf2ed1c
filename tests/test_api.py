# tests/test_api.py
from __future__ import annotations

from typing import Any

import pytest
import respx
from httpx import Response

import src.api.routes as routes_module
from src.exceptions import StoreError
from src.stats import StatsService
from tests.fixtures import HOROSKOP_HTML, MISTNOST_REDIRECT_HTML, SVATKY_BYTES

XFF = {"X-Forwarded-For": "1.2.3.4"}
HTML_UTF8 = {"Content-Type": "text/html; charset=utf-8"}
SVATKY_URL = "http://svatky.pavucina.com/svatek-vcera-dnes-zitra.html"


class FailingStore:
    def load(self, key: str) -> Any:
        raise StoreError("down")

    def save(self, key: str, value: Any, ttl: float) -> None:
        raise StoreError("down")


def _mock_svatky() -> respx.Route:
    return respx.get(SVATKY_URL).mock(
        return_value=Response(200, content=SVATKY_BYTES, headers={"Content-Type": "text/html"})
    )


# ---------------------------------------------------------------------------
# Rate limiting over HTTP
# ---------------------------------------------------------------------------


@respx.mock
def test_101_requests_from_one_client(make_client, fake_clock) -> None:
    _mock_svatky()
    client = make_client(limit=100, window_sec=60)

    remaining = []
    for _ in range(100):
        resp = client.get("/svatky/dnes", headers=XFF)
        assert resp.status_code == 200
        remaining.append(int(resp.headers["X-RateLimit-Remaining"]))
    assert remaining == list(range(99, -1, -1))

    resp = client.get("/svatky/dnes", headers=XFF)
    assert resp.status_code == 429
    assert 0 <= int(resp.headers["Retry-After"]) <= 60
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    assert resp.headers["X-RateLimit-Limit"] == "100"

    body = resp.json()["error"]
    assert body["code"] == 429
    assert body["message"] == "Rate limit exceeded. Please try again later."
    assert body["reset_time"] == int(resp.headers["X-RateLimit-Reset"])
    assert body["reset_in_seconds"] == int(resp.headers["Retry-After"])


@respx.mock
def test_window_reopens_after_reset(make_client, fake_clock) -> None:
    _mock_svatky()
    client = make_client(limit=2, window_sec=60)

    client.get("/svatky", headers=XFF)
    client.get("/svatky", headers=XFF)
    assert client.get("/svatky", headers=XFF).status_code == 429

    fake_clock.advance(61)
    resp = client.get("/svatky", headers=XFF)
    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Remaining"] == "1"


@respx.mock
def test_rejected_request_does_not_reach_handler(make_client, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(routes_module, "get_svatky", lambda *a, **kw: calls.append(1) or {})
    client = make_client(limit=1)

    client.get("/svatky", headers=XFF)
    assert client.get("/svatky", headers=XFF).status_code == 429
    assert len(calls) == 1


def test_clients_are_limited_independently(make_client, monkeypatch) -> None:
    monkeypatch.setattr(routes_module, "get_svatky", lambda *a, **kw: {})
    client = make_client(limit=1)

    assert client.get("/svatky", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 200
    assert client.get("/svatky", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 429
    assert client.get("/svatky", headers={"X-Real-IP": "2.2.2.2"}).status_code == 200


def test_health_is_not_rate_limited(make_client) -> None:
    client = make_client(limit=1)
    for _ in range(3):
        resp = client.get("/health", headers=XFF)
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
        assert "X-RateLimit-Limit" not in resp.headers


def test_unknown_routes_are_limited_and_json(make_client) -> None:
    client = make_client(limit=1)
    resp = client.get("/nope", headers=XFF)
    assert resp.status_code == 404
    assert resp.json() == {"error": {"message": "Not Found", "code": 404}}
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    assert client.get("/nope", headers=XFF).status_code == 429


def test_store_outage_fails_open(make_client, monkeypatch) -> None:
    monkeypatch.setattr(routes_module, "get_svatky", lambda *a, **kw: {"dnes": "Lukáš"})
    client = make_client(store=FailingStore())
    resp = client.get("/svatky", headers=XFF)
    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Remaining"] == "99"


def test_store_outage_can_fail_closed(make_client) -> None:
    client = make_client(store=FailingStore(), fail_open=False)
    assert client.get("/svatky", headers=XFF).status_code == 429


# ---------------------------------------------------------------------------
# Payloads and error mapping
# ---------------------------------------------------------------------------


@respx.mock
def test_success_payload_shape_and_content_type(make_client) -> None:
    _mock_svatky()
    resp = make_client().get("/svatky/dnes")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/json;charset=utf-8"
    assert resp.json() == {"data": {"dnes": "Lukáš"}}


@respx.mock
def test_horoskop_endpoint(make_client) -> None:
    respx.get("https://www.horoskopy.cz/stir").mock(
        return_value=Response(200, text=HOROSKOP_HTML, headers=HTML_UTF8)
    )
    resp = make_client().get("/horoskop/Štír")
    assert resp.status_code == 200
    assert resp.json()["data"]["laska-a-pratelstvi"] == "Romantika."


def test_invalid_parameter_is_400(make_client) -> None:
    resp = make_client().get("/horoskop/unknown")
    assert resp.status_code == 400
    assert resp.json()["error"] == {"message": "Unknown zodiac sign: unknown", "code": 400}


@respx.mock
def test_unknown_room_is_404(make_client) -> None:
    respx.get("http://chat.chatujme.cz/room-info?room_id=999").mock(
        return_value=Response(200, text=MISTNOST_REDIRECT_HTML, headers=HTML_UTF8)
    )
    resp = make_client().get("/mistnost/999")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == 404


@respx.mock
def test_upstream_failure_is_502(make_client) -> None:
    respx.get(SVATKY_URL).mock(return_value=Response(503))
    resp = make_client().get("/svatky")
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == 502


@respx.mock
def test_extraction_failure_is_502_with_message(make_client) -> None:
    respx.get("https://www.horoskopy.cz/beran").mock(
        return_value=Response(200, text="<html></html>", headers=HTML_UTF8)
    )
    resp = make_client().get("/horoskop/beran")
    assert resp.status_code == 502
    assert resp.json()["error"]["message"] == "Failed to load horoskop for beran"


def test_unexpected_error_is_json_500(make_client, monkeypatch) -> None:
    def boom(*a, **kw):
        raise RuntimeError("secret stack detail")

    monkeypatch.setattr(routes_module, "get_svatky", boom)
    resp = make_client(raise_server_exceptions=False).get("/svatky", headers=XFF)
    assert resp.status_code == 500
    assert resp.json() == {"error": {"message": "Internal server error", "code": 500}}
    assert resp.headers["content-type"] == "application/json;charset=utf-8"
    assert "secret" not in resp.text
    # The error response is still counted against the client
    assert resp.headers["X-RateLimit-Limit"] == "100"
    assert resp.headers["X-RateLimit-Remaining"] == "99"
    assert "X-RateLimit-Reset" in resp.headers


def test_unexpected_error_is_recorded_as_500(make_client, monkeypatch, stats_service: StatsService) -> None:
    def boom(*a, **kw):
        raise RuntimeError("boom")

    monkeypatch.setattr(routes_module, "get_svatky", boom)
    assert make_client().get("/svatky", headers=XFF).status_code == 500

    stats = stats_service.get_stats()
    assert stats["totalRequests"] == 1
    assert stats["successRate"] == 0.0
    assert stats["topEndpoints"][0]["path"] == "/svatky"


# ---------------------------------------------------------------------------
# Stats middleware
# ---------------------------------------------------------------------------


@respx.mock
def test_requests_are_recorded_in_stats(make_client, stats_service: StatsService) -> None:
    _mock_svatky()
    client = make_client(limit=2)
    client.get("/svatky/dnes", headers=XFF)
    client.get("/svatky/dnes", headers=XFF)
    client.get("/svatky/dnes", headers=XFF)  # 429
    client.get("/health")

    stats = stats_service.get_stats()
    assert stats["totalRequests"] == 3
    assert stats["topEndpoints"][0]["path"] == "/svatky/dnes"
    assert stats["successRate"] == pytest.approx(66.7)


def test_broken_stats_sink_never_breaks_responses(make_client) -> None:
    class ExplodingSink:
        def log_request(self, *args) -> None:
            raise RuntimeError("disk full")

    resp = make_client(stats=ExplodingSink()).get("/nope")
    assert resp.status_code == 404
