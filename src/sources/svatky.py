# src/sources/svatky.py
from __future__ import annotations

import re
from typing import Any

from src.cache import ResponseCache, normalize_param
from src.exceptions import ExtractionFailed, InvalidParameter
from src.extract import FieldSpec, extract
from src.fetch import FetcherClient

URL_SVATKY = "http://svatky.pavucina.com/svatek-vcera-dnes-zitra.html"

# The page is served in ISO-8859-2. Patterns run on the latin-1 view of the
# bytes, so every accented letter is a single "." in the labels below.
PAGE_ENCODING = "iso-8859-2"
UNKNOWN_NAME = "Neznámý"

DAY_LABELS: dict[str, str] = {
    "predevcirem": r"P.edev..rem",
    "vcera": r"V.era",
    "dnes": r"Dnes",
    "zitra": r"Z.tra",
}


def _day_field(day: str, label: str) -> FieldSpec:
    return FieldSpec(
        name=day,
        pattern=rf"<td class=\"td-vdz\">{label}</td>\s*[^\n]*?m. sv.tek[^\n]*?>([^<]+)</a>",
        encoding=PAGE_ENCODING,
        flags=re.IGNORECASE,
        default=UNKNOWN_NAME,
    )


SVATKY_FIELDS: list[FieldSpec] = [_day_field(day, label) for day, label in DAY_LABELS.items()]


def resolve_day(den: str | None) -> str | None:
    """None means every day; accents are optional ("zítra" == "zitra")."""
    if den is None:
        return None
    day = normalize_param(den)
    if day not in DAY_LABELS:
        raise InvalidParameter(f"Unknown day: {den} (expected one of {', '.join(DAY_LABELS)})")
    return day


def parse_svatky(raw_html: str, day: str | None = None) -> dict[str, Any]:
    specs = SVATKY_FIELDS if day is None else [s for s in SVATKY_FIELDS if s.name == day]
    result = extract(raw_html, specs)
    if result.is_empty:
        raise ExtractionFailed("svatky", day or "all")
    return result.to_dict()


def get_svatky(cache: ResponseCache, fetcher: FetcherClient, den: str | None = None) -> dict[str, Any]:
    """Name days around today; one day when `den` is given, all four otherwise."""
    day = resolve_day(den)

    def compute() -> dict[str, Any]:
        page = fetcher.get(URL_SVATKY)
        return parse_svatky(page.raw_text, day)

    return cache.get_or_compute(cache.key("svatky", day or "all"), compute)


__all__ = ["DAY_LABELS", "SVATKY_FIELDS", "get_svatky", "parse_svatky", "resolve_day"]
