# src/fetch/__init__.py
"""
Tiny fetcher package: an httpx client with bounded timeouts and retries.

Public entry points:
  - FetcherClient, FetchResult
Errors surface as src.exceptions.UpstreamError.
"""

from .client import (
    FetcherClient,
    FetchResult,
)

__all__ = [
    "FetcherClient",
    "FetchResult",
]
