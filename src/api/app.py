from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api import admin as admin_routes
from src.api import routes as source_routes
from src.api.middleware.rate_limit import RateLimitMiddleware
from src.api.middleware.stats import StatsMiddleware
from src.api.responses import JsonResponse, error_response
from src.cache import ResponseCache
from src.config import AppConfig, load_settings
from src.exceptions import GatewayError, UpstreamError
from src.fetch import FetcherClient
from src.ratelimit import RateLimiter
from src.stats import NullStatsSink, StatsService, StatsSink
from src.store import KeyValueStore, get_store

log = logging.getLogger(__name__)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError) -> JsonResponse:
        if isinstance(exc, UpstreamError):
            log.warning("Upstream failure on %s: %s", request.url.path, exc)
        return error_response(exc.status_code, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JsonResponse:
        return error_response(exc.status_code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JsonResponse:
        return error_response(400, "Invalid request parameters")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JsonResponse:
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error")


def create_app(
    *,
    store: KeyValueStore | None = None,
    fetcher: FetcherClient | None = None,
    stats: StatsSink | None = None,
    config: AppConfig | None = None,
) -> FastAPI:
    """
    Build the gateway app around one shared store.

    The limiter and the response cache share `store`; tests pass a
    MemoryStore (or a fake Redis-backed store) and a FetcherClient with a
    mock transport.
    """
    cfg = config or load_settings()
    if store is None:
        store = get_store()
    if fetcher is None:
        fetcher = FetcherClient(config=cfg.fetch)
    if stats is None:
        stats = StatsService(cfg.stats.path) if cfg.stats.enabled else NullStatsSink()

    app = FastAPI(title="pLBOT API", default_response_class=JsonResponse)
    app.state.store = store
    app.state.limiter = RateLimiter(store, config=cfg.rate)
    app.state.cache = ResponseCache(store, config=cfg.cache)
    app.state.fetcher = fetcher
    app.state.stats = stats

    # Last added runs first: stats wraps the limiter so 429s are counted too.
    app.add_middleware(RateLimitMiddleware, limiter=app.state.limiter)
    app.add_middleware(StatsMiddleware, sink=stats)

    _install_error_handlers(app)

    app.include_router(source_routes.router)
    app.include_router(admin_routes.router)
    return app


app = create_app()
