# src/api/admin.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from src.api.deps import get_stats_service, require_admin
from src.api.responses import JsonResponse
from src.stats import StatsService

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    default_response_class=JsonResponse,
)


def _remote_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.get("/stats")
def admin_stats(stats: StatsService = Depends(get_stats_service)) -> dict[str, Any]:
    """
    Aggregated request stats: totals, success rate, average latency,
    top endpoints and the last 24 hourly buckets.

    The same payload is printed by `plbot-api stats`.
    """
    return {"data": stats.get_stats()}


@router.post("/stats/reset")
def admin_stats_reset(
    request: Request,
    stats: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    stats.reset_stats()
    log.info("Request stats reset", extra={"remote_ip": _remote_ip(request)})
    return {"data": {"reset": True}}
