# src/sources/pocasi.py
from __future__ import annotations

from typing import Any

from src.cache import ResponseCache, normalize_param
from src.exceptions import ExtractionFailed, InvalidParameter
from src.extract import FieldSpec, extract, extract_composite
from src.fetch import FetcherClient

URL_POCASI = "https://pocasi.seznam.cz/{city}"
DEFAULT_CITY = "praha"
UNKNOWN_TEMP = "?? °C"

DAYS = ("dnes", "zitra", "pozitri")

# Upstream label -> output field for today's part-of-day temperatures
DAY_TIMES: dict[str, str] = {
    "rano": "Ráno",
    "odpoledne": "Odpoledne",
    "vecer": "Večer",
    "noc": "V Noci",
}


def _block(day: str) -> str:
    # Everything from this day's forecast div up to the next day's (or EOF)
    return rf"<div id=\"predpoved-{day}\"(.*?)(?:id=\"predpoved-|\Z)"


def _common(day: str) -> list[FieldSpec]:
    return [
        FieldSpec(
            name="datum",
            pattern=_block(day),
            sub_pattern=r"<span class=\"date\">(.*?)</span>",
            text_only=True,
        ),
        FieldSpec(
            name="predpoved",
            pattern=_block(day),
            sub_pattern=r"<div class=\"info\">\s*<p>\s*([^<]+)</p>",
        ),
    ]


def _title() -> FieldSpec:
    return FieldSpec(
        name="pro",
        pattern=r"<span id=\"title-loc\">(.*?)</span>",
        text_only=True,
        transform=lambda loc: f"Pro {loc}",
    )


def _today_fields() -> list[FieldSpec]:
    fields = _common("dnes")
    fields.append(
        FieldSpec(
            name="nyni",
            pattern=_block("dnes"),
            sub_pattern=r"temp.*?value\">([^<]*).*?sup\">([^<]*)</span>",
            sub_group=(1, 2),
            default=UNKNOWN_TEMP,
        )
    )
    for name, label in DAY_TIMES.items():
        fields.append(
            FieldSpec(
                name=name,
                pattern=_block("dnes"),
                # temperature + unit, then the dayTime label, without crossing into another reading
                sub_pattern=(
                    r"temp\">([-\d]+)(?:(?!temp\">).)*?sup\">([^<]*)</span>"
                    rf"(?:(?!temp\">).)*?dayTime\">\s*{label}\s*</span>"
                ),
                sub_group=(1, 2),
                default=UNKNOWN_TEMP,
            )
        )
    fields.append(_title())
    return fields


def _later_fields(day: str) -> list[FieldSpec]:
    fields = _common(day)
    for name, marker in (("den", "atDay"), ("noc", "atNight")):
        fields.append(
            FieldSpec(
                name=name,
                pattern=_block(day),
                sub_pattern=rf"{marker}.*?temp.*?value\">([-\d]+).*?sup\">([^<]+)</span>",
                sub_group=(1, 2),
                default=UNKNOWN_TEMP,
            )
        )
    fields.append(_title())
    return fields


POCASI_FIELDS: dict[str, list[FieldSpec]] = {
    "dnes": _today_fields(),
    "zitra": _later_fields("zitra"),
    "pozitri": _later_fields("pozitri"),
}


def resolve_day(den: str | None) -> str | None:
    if den is None:
        return None
    day = normalize_param(den)
    if day not in POCASI_FIELDS:
        raise InvalidParameter(f"Unknown day: {den} (expected one of {', '.join(DAYS)})")
    return day


def resolve_city(mesto: str | None) -> str:
    city = normalize_param(mesto)
    return city or DEFAULT_CITY


def parse_pocasi(html: str, city: str, day: str | None = None) -> dict[str, Any]:
    """
    One day's forecast, or all three as {"dnes": {...}, "zitra": {...}, "pozitri": {...}}.

    A day whose block is missing comes back with defaults; only a page with
    no recognizable forecast at all is an error.
    """
    if day is None:
        result = extract_composite(html, POCASI_FIELDS)
        forecasts = list(result.values())
    else:
        result = extract(html, POCASI_FIELDS[day])
        forecasts = [result]
    if not any(f["predpoved"] for f in forecasts):
        raise ExtractionFailed("pocasi", city)
    return result.to_dict()


def get_pocasi(
    cache: ResponseCache,
    fetcher: FetcherClient,
    den: str | None = None,
    mesto: str | None = None,
) -> dict[str, Any]:
    day = resolve_day(den)
    city = resolve_city(mesto)

    def compute() -> dict[str, Any]:
        page = fetcher.get(URL_POCASI.format(city=city))
        return parse_pocasi(page.text, city, day)

    return cache.get_or_compute(cache.key("pocasi", day or "all", {"mesto": city}), compute)


__all__ = ["DAYS", "POCASI_FIELDS", "get_pocasi", "parse_pocasi", "resolve_city", "resolve_day"]
