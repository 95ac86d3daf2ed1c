# src/stats/service.py
from __future__ import annotations

import datetime as dt
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

log = logging.getLogger(__name__)

# Hourly buckets kept in the histogram
HOURS_KEPT = 24
TOP_ENDPOINTS = 10


@runtime_checkable
class StatsSink(Protocol):
    """Receives one observation per finished request. Must never raise."""

    def log_request(
        self, path: str, method: str, status_code: int, latency_ms: float
    ) -> None: ...


class NullStatsSink:
    def log_request(self, path: str, method: str, status_code: int, latency_ms: float) -> None:
        return None


def _default_stats() -> dict[str, Any]:
    return {
        "totalRequests": 0,
        "successRate": 100,
        "avgResponseTime": 0,
        "topEndpoints": [],
        "categories": [],
        "byHour": {},
    }


def _hour_bucket(now: dt.datetime | None = None) -> str:
    now = now or dt.datetime.now()
    return now.strftime("%Y-%m-%d %H:00")


class StatsService:
    """
    File-backed request statistics.

    Raw counters live in one JSON document:

        {
          "total_requests": 12,
          "endpoints": {"GET /svatky": {"path", "method", "requests",
                                        "success", "errors", "total_time"}},
          "by_hour": {"2024-05-01 13:00": 12}
        }

    log_request() is best-effort: I/O or decode failures are logged at DEBUG
    and swallowed so a broken stats file never changes an API response.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    # ---- sink ----------------------------------------------------------------------

    def log_request(self, path: str, method: str, status_code: int, latency_ms: float) -> None:
        try:
            with self._lock:
                stats = self._load()
                self._record(stats, path, method, int(status_code), float(latency_ms))
                self._save(stats)
        except (OSError, ValueError, TypeError) as exc:
            log.debug(
                "Failed to record request stats",
                extra={"path": path, "method": method, "error": str(exc)},
            )

    @staticmethod
    def _record(
        stats: dict[str, Any], path: str, method: str, status_code: int, latency_ms: float
    ) -> None:
        stats["total_requests"] = int(stats.get("total_requests", 0)) + 1

        endpoint_key = f"{method} {path}"
        endpoints = stats.setdefault("endpoints", {})
        entry = endpoints.setdefault(
            endpoint_key,
            {
                "path": path,
                "method": method,
                "requests": 0,
                "success": 0,
                "errors": 0,
                "total_time": 0.0,
            },
        )
        entry["requests"] += 1
        entry["total_time"] += latency_ms
        if 200 <= status_code < 400:
            entry["success"] += 1
        else:
            entry["errors"] += 1

        by_hour = stats.setdefault("by_hour", {})
        bucket = _hour_bucket()
        by_hour[bucket] = int(by_hour.get(bucket, 0)) + 1
        # Keep only the most recent hours; bucket labels sort chronologically.
        for stale in sorted(by_hour)[:-HOURS_KEPT]:
            del by_hour[stale]

    # ---- aggregation ---------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """
        Aggregated view served by GET /admin/stats.

        Shape:
            {
              "totalRequests": int,
              "successRate": float (percent),
              "avgResponseTime": int (ms),
              "topEndpoints": [{"path", "method", "requests", "percent"}],
              "categories": [{"name", "endpoints", "requests", "avg"}],
              "byHour": {"YYYY-MM-DD HH:00": int}
            }
        """
        with self._lock:
            stats = self._load()

        endpoints = list((stats.get("endpoints") or {}).values())
        if not endpoints:
            return _default_stats()

        total = int(stats.get("total_requests", 0))
        endpoints.sort(key=lambda e: e["requests"], reverse=True)

        total_success = sum(e["success"] for e in endpoints)
        total_time = sum(e["total_time"] for e in endpoints)

        top = []
        for e in endpoints[:TOP_ENDPOINTS]:
            top.append(
                {
                    "path": e["path"],
                    "method": e["method"],
                    "requests": e["requests"],
                    "percent": round(e["requests"] / total * 100, 1) if total else 0,
                }
            )

        return {
            "totalRequests": total,
            "successRate": round(total_success / total * 100, 1) if total else 100,
            "avgResponseTime": round(total_time / total) if total else 0,
            "topEndpoints": top,
            "categories": [
                {
                    "name": "All Endpoints",
                    "endpoints": len(endpoints),
                    "requests": total,
                    "avg": round(total / len(endpoints)),
                }
            ],
            "byHour": dict(stats.get("by_hour") or {}),
        }

    def reset_stats(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass

    # ---- file I/O ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(text)
        except ValueError:
            log.warning("Stats file %s is corrupt; starting over", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, stats: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename: readers see the old file or the new one.
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".stats-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(stats, fh, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


__all__ = ["StatsSink", "StatsService", "NullStatsSink"]
