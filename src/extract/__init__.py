# src/extract/__init__.py
"""
Field extraction slice.

This package exposes the pure document -> fields pipeline used by every
scraping source.

Public API:
- FieldSpec: declarative description of one field (pattern, groups, encoding, transform)
- extract(document, specs) -> ExtractionResult
- extract_field(document, spec) -> value | ABSENT
- extract_composite(document, {name: specs}) -> nested ExtractionResult
"""

from __future__ import annotations

from .pipeline import (
    ABSENT,
    ExtractionResult,
    FieldSpec,
    extract,
    extract_composite,
    extract_field,
    strip_markup,
    transcode,
)

__all__ = [
    "ABSENT",
    "ExtractionResult",
    "FieldSpec",
    "extract",
    "extract_composite",
    "extract_field",
    "strip_markup",
    "transcode",
]
