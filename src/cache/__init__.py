from .response_cache import (
    CACHE_PREFIX,
    ResponseCache,
    compute_key,
    normalize_param,
    today,
)

__all__ = [
    "CACHE_PREFIX",
    "ResponseCache",
    "compute_key",
    "normalize_param",
    "today",
]
