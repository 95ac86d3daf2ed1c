"""
Request stats middleware.

Times every HTTP request and reports (path, method, status, latency_ms) to a
StatsSink once the response has been sent. The sink runs in the threadpool
and any failure is logged and dropped; it can never change the response.

Usage:
    app.add_middleware(StatsMiddleware, sink=StatsService("temp/stats.json"))
"""

from __future__ import annotations

import logging
import time

from starlette.concurrency import run_in_threadpool
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.stats import StatsSink

log = logging.getLogger(__name__)


class StatsMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        sink: StatsSink,
        *,
        exclude_paths: list[str] | None = None,
    ) -> None:
        self.app = app
        self.sink = sink
        self.exclude_paths = set(exclude_paths or [])
        self.exclude_paths.update({"/health", "/favicon.ico"})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http" or scope.get("path") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        status_code = 500

        async def capture_status(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
            await send(message)

        try:
            await self.app(scope, receive, capture_status)
        finally:
            elapsed_ms = (time.perf_counter() - start_time) * 1000.0
            await self._observe(scope["path"], scope.get("method", "GET"), status_code, elapsed_ms)

    async def _observe(self, path: str, method: str, status_code: int, elapsed_ms: float) -> None:
        try:
            await run_in_threadpool(self.sink.log_request, path, method, status_code, elapsed_ms)
        except Exception:
            log.debug("Stats sink failed", exc_info=True)


__all__ = ["StatsMiddleware"]
