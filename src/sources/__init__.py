# src/sources/__init__.py
"""
Concrete scraping sources built on the cache, fetcher and extraction layers.

Each source exposes one get_*(cache, fetcher, ...) entry point that returns
the JSON-ready `data` payload or raises a GatewayError subclass.
"""

from .horoskopy import get_horoskop
from .mistnost import get_mistnost
from .pocasi import get_pocasi
from .svatky import get_svatky

__all__ = ["get_horoskop", "get_mistnost", "get_pocasi", "get_svatky"]
