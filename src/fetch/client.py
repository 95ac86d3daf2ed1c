# src/fetch/client.py
from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from email.message import Message

import httpx

from src.config import FetchConfig, load_settings
from src.exceptions import UpstreamError

log = logging.getLogger(__name__)

FETCH_ACCEPT = "text/html, application/json;q=0.9, */*;q=0.8"

# --------------------------------------------------------------------------------------------------
# Results
# --------------------------------------------------------------------------------------------------


@dataclass
class FetchResult:
    status: int
    url: str
    effective_url: str
    content_type: str | None
    body: bytes
    elapsed_ms: float

    @property
    def charset(self) -> str | None:
        if not self.content_type:
            return None
        msg = Message()
        msg["content-type"] = self.content_type
        return msg.get_param("charset")  # type: ignore[return-value]

    @property
    def text(self) -> str:
        """Body decoded with the declared charset (utf-8 when missing/unknown)."""
        charset = self.charset or "utf-8"
        try:
            return self.body.decode(charset, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

    @property
    def raw_text(self) -> str:
        """
        Body decoded byte-for-byte as latin-1.

        For legacy-charset pages: patterns run on this text and each field is
        re-decoded with its real charset (FieldSpec.encoding).
        """
        return self.body.decode("latin-1")


# --------------------------------------------------------------------------------------------------
# Client
# --------------------------------------------------------------------------------------------------


class FetcherClient:
    """
    Small wrapper around httpx with bounded timeouts and a short retry loop.

    Flow:
      1) GET url (redirects followed, capped by max_redirects)
      2) 2xx: return FetchResult
         5xx / transport error: retry with exponential backoff, then raise
         any other status: raise UpstreamError immediately
    Callers never see an httpx exception; everything surfaces as UpstreamError.
    """

    def __init__(
        self,
        *,
        config: FetchConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or load_settings().fetch
        self._client = httpx.Client(
            headers={"User-Agent": self.config.user_agent, "Accept": FETCH_ACCEPT},
            timeout=httpx.Timeout(self.config.timeout_sec, connect=self.config.connect_timeout_sec),
            follow_redirects=True,
            max_redirects=self.config.max_redirects,
            transport=transport,
        )

    # ---- core fetch ------------------------------------------------------------------

    def fetch(self, url: str, params: Mapping[str, str] | None = None) -> FetchResult:
        attempt = 0
        while True:
            started = time.perf_counter()
            try:
                resp = self._client.get(url, params=params)
            except httpx.TimeoutException as exc:
                error = UpstreamError(url, reason=f"timeout:{type(exc).__name__}")
            except httpx.HTTPError as exc:
                error = UpstreamError(url, reason=f"error:{type(exc).__name__}")
            else:
                status = int(resp.status_code)
                elapsed_ms = (time.perf_counter() - started) * 1000.0
                if 200 <= status < 300:
                    log.debug("GET %s -> %d in %.0f ms", url, status, elapsed_ms)
                    return FetchResult(
                        status=status,
                        url=url,
                        effective_url=str(resp.url),
                        content_type=resp.headers.get("Content-Type"),
                        body=resp.content or b"",
                        elapsed_ms=elapsed_ms,
                    )
                error = UpstreamError(url, status=status, reason="http-status")
                if status < 500:
                    raise error

            if attempt >= self.config.max_retries:
                log.warning("Upstream fetch failed: %s", error)
                raise error
            self._sleep_retry(attempt)
            attempt += 1

    def get(self, url: str, params: Mapping[str, str] | None = None) -> FetchResult:
        return self.fetch(url, params=params)

    # ----------------------------------------------------------------------------------
    # Internals
    # ----------------------------------------------------------------------------------

    def _sleep_retry(self, attempt: int) -> None:
        # Basic exponential backoff; tests can monkeypatch time.sleep
        delay = self.config.retry_base_seconds * (2**attempt)
        time.sleep(delay)

    # ----------------------------------------------------------------------------------
    # Context manager
    # ----------------------------------------------------------------------------------

    def close(self) -> None:
        try:
            self._client.close()
        except Exception:
            pass

    def __enter__(self) -> FetcherClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "FetcherClient",
    "FetchResult",
]
