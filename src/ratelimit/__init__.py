"""
Per-client fixed-window rate limiting.

The HTTP side lives in src.api.middleware.rate_limit; this package holds the
store-backed core so it can be exercised without an ASGI app.
"""

from .limiter import (
    UNKNOWN_CLIENT,
    ClientWindow,
    Decision,
    RateLimiter,
    client_identity,
)

__all__ = [
    "ClientWindow",
    "Decision",
    "RateLimiter",
    "client_identity",
    "UNKNOWN_CLIENT",
]
