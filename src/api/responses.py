from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

JSON_MEDIA_TYPE = "application/json;charset=utf-8"


class JsonResponse(JSONResponse):
    """JSONResponse with an explicit utf-8 charset in Content-Type."""

    media_type = JSON_MEDIA_TYPE


def error_response(
    status_code: int,
    message: str,
    *,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JsonResponse:
    """
    Helper to return a JSON error payload with a consistent shape.

    Example:
        { "error": { "message": "Unknown zodiac sign", "code": 400 } }
    """
    return JsonResponse(
        status_code=status_code,
        content={"error": {"message": message, "code": status_code, **extra}},
        headers=headers,
    )
