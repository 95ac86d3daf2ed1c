# src/sources/horoskopy.py
from __future__ import annotations

import logging
from typing import Any

from src.cache import ResponseCache, normalize_param, today
from src.exceptions import ExtractionFailed, InvalidParameter
from src.extract import FieldSpec, extract
from src.fetch import FetcherClient

log = logging.getLogger(__name__)

URL_HOROSKOPY = "https://www.horoskopy.cz/{sign}"

# Accepted spellings (after normalize_param) -> upstream slug
SIGNS: dict[str, str] = {
    "beran": "beran",
    "byk": "byk",
    "byik": "byk",
    "blizenci": "blizenci",
    "rak": "rak",
    "lev": "lev",
    "panna": "panna",
    "vahy": "vahy",
    "stir": "stir",
    "strelec": "strelec",
    "kozoroh": "kozoroh",
    "vodnar": "vodnar",
    "ryby": "ryby",
}


def _section(name: str, heading: str) -> FieldSpec:
    # <h2>Láska ...</h2><p>...</p> or <div>Láska ...</div><p>...</p>
    return FieldSpec(
        name=name,
        pattern=rf"<(h2|div)[^>]*>[^<]*{heading}[^<]*</\1>\s*<p[^>]*>(.*?)</p>",
        group=2,
        text_only=True,
        default="",
    )


HOROSKOP_FIELDS: list[FieldSpec] = [
    FieldSpec(name="znameni", pattern=r"<h1[^>]*>(.*?)</h1>", text_only=True),
    FieldSpec(
        name="datum",
        pattern=r"<div[^>]*class=\"[^\"]*\bdate\b[^\"]*\"[^>]*>(.*?)</div>",
        text_only=True,
    ),
    FieldSpec(name="horoskop", pattern=r"<h2[^>]*>.*?</h2>\s*<p[^>]*>(.*?)</p>", text_only=True),
    _section("laska-a-pratelstvi", "Láska"),
    _section("penize-a-prace", "Peníze"),
    _section("rodina-a-vztahy", "Rodina"),
    _section("zdravi-a-kondice", "Zdraví"),
    _section("vhodne-aktivity-na-dnes", "Aktivity"),
]


def resolve_sign(znameni: str) -> str:
    """Map user input ("Štír", "vodnář", "byk") to the upstream slug."""
    sign = SIGNS.get(normalize_param(znameni))
    if sign is None:
        raise InvalidParameter(f"Unknown zodiac sign: {znameni}")
    return sign


def parse_horoskop(html: str, sign: str, tz_name: str | None = None) -> dict[str, Any]:
    result = extract(html, HOROSKOP_FIELDS)
    if not result["horoskop"]:
        log.info("Horoscope text missing for %s (missing=%s)", sign, result.missing)
        raise ExtractionFailed("horoskop", sign)

    data = result.to_dict()
    data["znameni"] = data["znameni"] or sign.capitalize()
    data["datum"] = data["datum"] or today(tz_name).strftime("%d.%m.%Y")
    return data


def get_horoskop(cache: ResponseCache, fetcher: FetcherClient, znameni: str) -> dict[str, Any]:
    """
    Daily horoscope for one sign.

    Cached per sign per calendar day. A page whose horoscope text cannot be
    found raises ExtractionFailed and is not cached, so the next request
    tries upstream again.
    """
    sign = resolve_sign(znameni)

    def compute() -> dict[str, Any]:
        page = fetcher.get(URL_HOROSKOPY.format(sign=sign))
        return parse_horoskop(page.text, sign, cache.timezone)

    return cache.get_or_compute(cache.key("horoskop", "detail", sign), compute)


__all__ = ["SIGNS", "HOROSKOP_FIELDS", "get_horoskop", "parse_horoskop", "resolve_sign"]
