# src/api/deps.py
from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from src.cache import ResponseCache
from src.config import settings
from src.fetch import FetcherClient
from src.ratelimit import client_identity
from src.stats import StatsService, StatsSink

# Header used for admin/API-key auth on /admin endpoints.
# Example:  x-admin-api-key: supersecret
api_key_header = APIKeyHeader(name="x-admin-api-key", auto_error=False)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# App-scoped services (built once in create_app and kept on app.state)
# ---------------------------------------------------------------------------


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


def get_fetcher(request: Request) -> FetcherClient:
    return request.app.state.fetcher


def get_stats_service(request: Request) -> StatsService:
    """The file-backed stats service; 503 when stats are disabled."""
    sink: StatsSink = request.app.state.stats
    if not isinstance(sink, StatsService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Request stats are disabled",
        )
    return sink


# ---------------------------------------------------------------------------
# Admin guard
# ---------------------------------------------------------------------------


def _is_ip_allowed(client_ip: str | None) -> bool:
    """An empty ADMIN_ALLOWED_IPS admits everyone; otherwise only listed IPs."""
    allowed = settings.ADMIN_ALLOWED_IPS
    if not allowed:
        return True
    return bool(client_ip) and client_ip in allowed


def _key_matches(supplied: str | None, configured: str) -> bool:
    if not supplied:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), configured.encode("utf-8"))


def require_admin(
    request: Request,
    api_key: str | None = Depends(api_key_header),
) -> None:
    """
    Guard for the /admin stats routes.

    ADMIN_API_KEY, when set, must arrive in x-admin-api-key (else 401).
    ADMIN_ALLOWED_IPS, when set, must contain the caller's IP (else 403).
    The IP is resolved the same way the rate limiter resolves it
    (X-Forwarded-For, X-Real-IP, then the peer), so behind a proxy the
    allow-list names end-client addresses.
    """
    configured_key = settings.ADMIN_API_KEY
    if configured_key and not _key_matches(api_key, configured_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin API key",
        )

    peer = request.client.host if request.client else None
    client_ip = client_identity(request.headers, peer)
    if not _is_ip_allowed(client_ip):
        log.info("Admin request refused for %s", client_ip)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access is not allowed from this IP address",
        )
