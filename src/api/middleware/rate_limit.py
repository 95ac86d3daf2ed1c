from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.api.responses import error_response
from src.ratelimit import Decision, RateLimiter, client_identity

log = logging.getLogger(__name__)

DEFAULT_EXCLUDE_PATHS = frozenset({"/health", "/favicon.ico"})


class RateLimitMiddleware:
    """
    Gatekeeper in front of every route.

    - Rejected: respond 429 with X-RateLimit-* / Retry-After headers and a
      JSON error body; the wrapped app is never called.
    - Admitted: call the app and add X-RateLimit-* headers to whatever
      response it sends. An unhandled error before the response starts
      becomes a JSON 500 that carries the same headers.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        exclude_paths: set[str] | frozenset[str] | None = None,
    ) -> None:
        self.app = app
        self.limiter = limiter
        self.exclude_paths = frozenset(exclude_paths or DEFAULT_EXCLUDE_PATHS)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http" or scope.get("path") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        identity = client_identity(Headers(scope=scope), client[0] if client else None)
        # Store I/O may block (Redis); keep it off the event loop.
        decision = await run_in_threadpool(self.limiter.check, identity)

        if not decision.admitted:
            await self._send_429(scope, receive, send, decision)
            return

        rate_headers = decision.headers()
        response_started = False

        async def send_with_headers(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                for name, value in rate_headers.items():
                    headers[name] = value
            await send(message)

        try:
            await self.app(scope, receive, send_with_headers)
        except Exception:
            if response_started:
                raise
            # Answer here so the 500 still carries X-RateLimit-* headers.
            log.exception("Unhandled error on %s %s", scope.get("method"), scope.get("path"))
            resp = error_response(500, "Internal server error")
            await resp(scope, receive, send_with_headers)

    async def _send_429(self, scope: Scope, receive: Receive, send: Send, decision: Decision) -> None:
        resp = error_response(
            429,
            "Rate limit exceeded. Please try again later.",
            headers=decision.headers(),
            reset_time=decision.reset_at,
            reset_in_seconds=decision.retry_after,
        )
        await resp(scope, receive, send)
