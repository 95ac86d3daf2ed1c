from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any, TextIO

import uvicorn

from src.config import load_settings, settings
from src.stats import StatsService

APP_PATH = "src.api.app:app"


def _print_header(title: str, out: TextIO) -> None:
    out.write(f"\n=== {title} ===\n")


def _print_kv(label: str, value: Any, out: TextIO) -> None:
    out.write(f"{label}: {value}\n")


def _print_stats_human(stats: dict[str, Any], out: TextIO) -> None:
    """
    Human-readable rendering for `stats`.

    Mirrors the GET /admin/stats payload so the two can be compared over SSH.
    """
    _print_header("Requests", out)
    _print_kv("Total requests", stats.get("totalRequests", 0), out)
    _print_kv("Success rate", f"{stats.get('successRate', 100)}%", out)
    _print_kv("Avg response time", f"{stats.get('avgResponseTime', 0)} ms", out)

    _print_header("Top endpoints", out)
    top = stats.get("topEndpoints", []) or []
    if not top:
        out.write("(no requests recorded)\n")
    else:
        out.write("method  requests  percent  path\n")
        out.write("------  --------  -------  ----\n")
        for e in top:
            out.write(
                f"{e.get('method', ''):6} {int(e.get('requests', 0)):9d} "
                f"{float(e.get('percent', 0)):7.1f}%  {e.get('path', '')}\n"
            )

    _print_header("Requests by hour", out)
    by_hour = stats.get("byHour", {}) or {}
    if not by_hour:
        out.write("(no hourly data)\n")
    else:
        for hour, count in sorted(by_hour.items()):
            out.write(f"{hour}  {int(count):5d}\n")


def _stats_service(path: str | None) -> StatsService:
    return StatsService(path or load_settings().stats.path)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plbot-api",
        description="CLI for running the pLBOT API gateway and inspecting its stats.",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the API under uvicorn.")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1).")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000).")
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on code changes (development only).",
    )

    stats_parser = subparsers.add_parser("stats", help="Show aggregated request stats.")
    stats_parser.add_argument("--file", default=None, help="Stats file (default: STATS_FILE).")
    stats_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the raw JSON payload instead of human-readable text.",
    )

    reset_parser = subparsers.add_parser("stats-reset", help="Delete all recorded request stats.")
    reset_parser.add_argument("--file", default=None, help="Stats file (default: STATS_FILE).")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Entry point for the plbot-api CLI.

    Intended usage:

        plbot-api serve --port 8080
        plbot-api stats
        plbot-api stats --json
        plbot-api stats-reset
    """
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.command == "serve":
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        uvicorn.run(APP_PATH, host=args.host, port=int(args.port), reload=bool(args.reload))
        return 0

    if args.command == "stats":
        stats = _stats_service(args.file).get_stats()
        if args.json:
            json.dump(stats, sys.stdout, indent=2, sort_keys=True, ensure_ascii=False)
            sys.stdout.write("\n")
        else:
            _print_stats_human(stats, sys.stdout)
        return 0

    if args.command == "stats-reset":
        service = _stats_service(args.file)
        service.reset_stats()
        sys.stdout.write(f"Stats reset ({service.path})\n")
        return 0

    parser.print_help(file=sys.stderr)
    return 1


__all__ = ["main"]
