# src/sources/mistnost.py
from __future__ import annotations

import re
from typing import Any

from src.cache import ResponseCache
from src.exceptions import ExtractionFailed, InvalidParameter, NotFound
from src.extract import FieldSpec, extract
from src.fetch import FetcherClient

URL_MISTNOST = "http://chat.chatujme.cz/room-info?room_id={room_id}"

# Room activity changes during the day; keep entries short-lived.
MISTNOST_TTL_SECONDS = 300

_ROOM_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_NOT_FOUND_RE = re.compile(r">Redirect<")

MISTNOST_FIELDS: list[FieldSpec] = [
    FieldSpec(name="mistnost", pattern=r"Místnost: <strong>(.+?)\s*<br", text_only=True),
    FieldSpec(name="popis", pattern=r"<td>Popis</td>\s*<td>(.*?)</td>"),
    FieldSpec(
        name="ss",
        pattern=r"<td>Stálý správce</td>\s*<td>(.*?)</td>",
        sub_pattern=r"<a[^>]*href=\"https?://profil\.chatujme\.cz/([^\"]*)\"",
        many=True,
        default=[],
    ),
    FieldSpec(
        name="celkovy-cas",
        pattern=r"<td>Celkový čas místnosti</td>\s*<td>(.+?) hod</td>",
        transform=lambda v: v.replace(",", ""),
    ),
    FieldSpec(name="aktualni-den", pattern=r"<td class=\"activeDay\">(.+?)</td>"),
    FieldSpec(
        name="aktualne-prochatovano",
        pattern=r"<td class=\"activeDay\">.+?</td>.*?<td class=\"activeDay\">(.+?)</td>",
    ),
    FieldSpec(name="web", pattern=r"<td>Web místnosti</td>.*?href=\"([^\"]*)\"", default=""),
    FieldSpec(
        name="limit",
        pattern=(
            r"<td>Kategorie :</td>.*?<strong>\(.*?glyphicon-(ok|warning)-sign"
            r".*?limit (\d+) hod.*?</strong></td>"
        ),
        group=(1, 2),
    ),
    FieldSpec(
        name="zalozeno",
        pattern=r"<td>Založeno</td>.*?<strong>\s*\|\s*([^(]*?)\s*\(",
    ),
]

_LIMIT_RE = re.compile(r"^(ok|warning)(\d+)$", re.IGNORECASE)


def _limit_info(raw: Any) -> dict[str, Any]:
    m = _LIMIT_RE.match(raw) if isinstance(raw, str) else None
    if m is None:
        return {"mistnost-limit": False}
    return {
        "mistnost-limit": True,
        "splneny-limit": m.group(1).lower() == "ok",
        "limit-hodin": m.group(2),
    }


def parse_mistnost(html: str, room_id: str) -> dict[str, Any]:
    if _NOT_FOUND_RE.search(html):
        raise NotFound(f"Room {room_id} was not found")

    result = extract(html, MISTNOST_FIELDS)
    if result.is_empty:
        raise ExtractionFailed("mistnost", room_id)

    data = result.to_dict()
    data["limit"] = _limit_info(data["limit"])
    return data


def get_mistnost(cache: ResponseCache, fetcher: FetcherClient, room_id: str) -> dict[str, Any]:
    """Chat room info; cached for five minutes. Unknown rooms raise NotFound."""
    room_id = (room_id or "").strip()
    if not _ROOM_ID_RE.match(room_id):
        raise InvalidParameter(f"Invalid room id: {room_id!r}")

    def compute() -> dict[str, Any]:
        page = fetcher.get(URL_MISTNOST.format(room_id=room_id))
        return parse_mistnost(page.text, room_id)

    return cache.get_or_compute(
        cache.key("mistnost", "detail", room_id),
        compute,
        ttl=MISTNOST_TTL_SECONDS,
    )


__all__ = ["MISTNOST_FIELDS", "MISTNOST_TTL_SECONDS", "get_mistnost", "parse_mistnost"]
