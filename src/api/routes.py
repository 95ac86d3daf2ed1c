# src/api/routes.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.api.deps import get_cache, get_fetcher
from src.api.responses import JsonResponse
from src.cache import ResponseCache
from src.fetch import FetcherClient
from src.sources import get_horoskop, get_mistnost, get_pocasi, get_svatky

# Sync handlers: FastAPI runs them in its threadpool, where blocking fetch
# and store I/O are fine.
router = APIRouter(default_response_class=JsonResponse)


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/horoskop/{znameni}", tags=["horoskop"])
def horoskop(
    znameni: str,
    cache: ResponseCache = Depends(get_cache),
    fetcher: FetcherClient = Depends(get_fetcher),
) -> dict[str, Any]:
    return {"data": get_horoskop(cache, fetcher, znameni)}


@router.get("/svatky", tags=["svatky"])
def svatky_all(
    cache: ResponseCache = Depends(get_cache),
    fetcher: FetcherClient = Depends(get_fetcher),
) -> dict[str, Any]:
    return {"data": get_svatky(cache, fetcher)}


@router.get("/svatky/{den}", tags=["svatky"])
def svatky_day(
    den: str,
    cache: ResponseCache = Depends(get_cache),
    fetcher: FetcherClient = Depends(get_fetcher),
) -> dict[str, Any]:
    return {"data": get_svatky(cache, fetcher, den)}


@router.get("/pocasi", tags=["pocasi"])
def pocasi_all(
    mesto: str | None = None,
    cache: ResponseCache = Depends(get_cache),
    fetcher: FetcherClient = Depends(get_fetcher),
) -> dict[str, Any]:
    return {"data": get_pocasi(cache, fetcher, None, mesto)}


@router.get("/pocasi/{den}", tags=["pocasi"])
def pocasi_day(
    den: str,
    mesto: str | None = None,
    cache: ResponseCache = Depends(get_cache),
    fetcher: FetcherClient = Depends(get_fetcher),
) -> dict[str, Any]:
    return {"data": get_pocasi(cache, fetcher, den, mesto)}


@router.get("/mistnost/{room_id}", tags=["mistnost"])
def mistnost(
    room_id: str,
    cache: ResponseCache = Depends(get_cache),
    fetcher: FetcherClient = Depends(get_fetcher),
) -> dict[str, Any]:
    return {"data": get_mistnost(cache, fetcher, room_id)}
