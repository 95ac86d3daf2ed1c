"""
Shared exception classes used across the codebase.

This module centralizes the gateway's error taxonomy so the store, the
fetcher, the sources and the HTTP layer agree on what each failure means.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for every error the gateway raises on purpose."""

    status_code = 500


class StoreError(GatewayError):
    """
    Raised when the key-value store cannot load or save a value.

    Examples:
        - Redis connection refused / timed out
        - A value that cannot be serialized to JSON
    """

    pass


class UpstreamError(GatewayError):
    """
    Raised when an upstream fetch fails.

    Examples:
        - Connect/read timeout
        - Transport error (DNS, TLS, connection reset)
        - Non-2xx HTTP status after retries
    """

    status_code = 502

    def __init__(self, url: str, *, status: int | None = None, reason: str = "error") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"status={status}" if status is not None else reason
        super().__init__(f"Upstream request to {url} failed ({detail})")


class ExtractionFailed(GatewayError):
    """Raised by a source when none of the fields it requires could be extracted."""

    status_code = 502

    def __init__(self, source: str, subject: str | None = None) -> None:
        self.source = source
        self.subject = subject
        suffix = f" for {subject}" if subject else ""
        super().__init__(f"Failed to load {source}{suffix}")


class InvalidParameter(GatewayError):
    status_code = 400


class NotFound(GatewayError):
    status_code = 404


__all__ = [
    "GatewayError",
    "StoreError",
    "UpstreamError",
    "ExtractionFailed",
    "InvalidParameter",
    "NotFound",
]
