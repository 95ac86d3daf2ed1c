# src/extract/pipeline.py
"""
Declarative field extraction from semi-structured upstream HTML.

A source describes what it wants as a list of FieldSpec records; one generic
loop (extract) applies them to a document. Every field is extracted on its
own: a pattern that no longer matches after upstream markup drift marks
that single field ABSENT and the rest of the document is still read.

The pipeline is pure: it never fetches or caches.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from html import unescape
from types import MappingProxyType
from typing import Any

from bs4 import BeautifulSoup

log = logging.getLogger(__name__)

DEFAULT_FLAGS = re.IGNORECASE | re.DOTALL


# --- Absence marker ----------------------------------------------------------


class _Absent:
    """Singleton marking a field whose fragment was not found."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


# --- Public data model -------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    """
    How to pull one named field out of a document.

      - pattern: locates the fragment; `group` selects the captured region
      - sub_pattern: optional refinement applied inside that region
        (`sub_group` selects from it; with many=True every match is kept)
      - encoding: legacy charset of the captured bytes (e.g. "iso-8859-2");
        see transcode()
      - text_only: strip markup from the value (BeautifulSoup)
      - transform: final str -> value hook (e.g. drop thousands separators)
      - default: rendered by ExtractionResult.to_dict() when the field is absent

    `group` / `sub_group` may be a tuple; the listed groups are concatenated,
    which is how "12" + "°C" style split values are joined.
    """

    name: str
    pattern: str | re.Pattern[str]
    sub_pattern: str | re.Pattern[str] | None = None
    encoding: str | None = None
    group: int | str | tuple[int | str, ...] = 1
    sub_group: int | str | tuple[int | str, ...] = 1
    many: bool = False
    flags: int = DEFAULT_FLAGS
    text_only: bool = False
    strip: bool = True
    transform: Callable[[str], Any] | None = None
    default: Any = None
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _compiled_sub: re.Pattern[str] | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Compile eagerly: a broken pattern should fail at import, not per request.
        object.__setattr__(self, "_compiled", _compile(self.pattern, self.flags))
        sub = _compile(self.sub_pattern, self.flags) if self.sub_pattern is not None else None
        object.__setattr__(self, "_compiled_sub", sub)
        if self.many and sub is None:
            raise ValueError(f"FieldSpec {self.name!r}: many=True requires a sub_pattern")
        _check_group(self.name, self._compiled, self.group)
        if sub is not None:
            _check_group(self.name, sub, self.sub_group)


def _compile(pattern: str | re.Pattern[str], flags: int) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, flags)


def _check_group(name: str, compiled: re.Pattern[str], group: int | str | tuple[int | str, ...]) -> None:
    # A pattern without groups yields the whole match for a single group.
    if not isinstance(group, tuple) and compiled.groups == 0:
        return
    for g in group if isinstance(group, tuple) else (group,):
        if isinstance(g, str):
            known = g in compiled.groupindex
        else:
            known = 0 <= g <= compiled.groups
        if not known:
            raise ValueError(f"FieldSpec {name!r}: pattern {compiled.pattern!r} has no group {g!r}")


class ExtractionResult(Mapping[str, Any]):
    """
    Immutable mapping of field name -> extracted value or ABSENT.

    Values can themselves be ExtractionResult instances (composite fields).
    """

    __slots__ = ("_fields", "_defaults")

    def __init__(
        self,
        fields: Mapping[str, Any],
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        self._fields = MappingProxyType(dict(fields))
        self._defaults = MappingProxyType(dict(defaults or {}))

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"ExtractionResult({dict(self._fields)!r})"

    @property
    def present(self) -> dict[str, Any]:
        return {k: v for k, v in self._fields.items() if v is not ABSENT}

    @property
    def missing(self) -> tuple[str, ...]:
        return tuple(k for k, v in self._fields.items() if v is ABSENT)

    @property
    def is_empty(self) -> bool:
        """True when nothing matched at all (recursing into composites)."""
        for value in self._fields.values():
            if isinstance(value, ExtractionResult):
                if not value.is_empty:
                    return False
            elif value is not ABSENT:
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name, value in self._fields.items():
            if isinstance(value, ExtractionResult):
                out[name] = value.to_dict()
            elif value is ABSENT:
                default = self._defaults.get(name)
                out[name] = list(default) if isinstance(default, list) else default
            else:
                out[name] = value
        return out


# --- Transforms --------------------------------------------------------------


def transcode(text: str, encoding: str) -> str:
    """
    Re-decode text that still carries raw legacy bytes.

    Documents from legacy-charset sites are decoded byte-for-byte as latin-1
    (see FetchResult.raw_text), so each character holds one source byte.
    Encoding back to latin-1 recovers those bytes, which are then decoded
    with the site's real charset. Raises UnicodeError when the text was not
    raw (contains code points above U+00FF) or the bytes are invalid.
    """
    return text.encode("latin-1").decode(encoding)


def strip_markup(fragment: str) -> str:
    return BeautifulSoup(fragment, "html.parser").get_text(" ", strip=True)


def _select(match: re.Match[str], group: int | str | tuple[int | str, ...]) -> str | None:
    if isinstance(group, tuple):
        parts = [match.group(g) for g in group]
        if all(p is None for p in parts):
            return None
        return "".join(p or "" for p in parts)
    if match.re.groups == 0:
        return match.group(0)
    return match.group(group)


def _finish(value: str, spec: FieldSpec) -> Any:
    if spec.encoding:
        value = transcode(value, spec.encoding)
    value = strip_markup(value) if spec.text_only else unescape(value)
    if spec.strip:
        value = value.strip()
    if spec.transform is not None:
        return spec.transform(value)
    return value


# --- Extraction --------------------------------------------------------------


def extract_field(document: str, spec: FieldSpec) -> Any:
    """
    Extract a single field; returns the value or ABSENT. Never raises for
    missing fragments, bad legacy bytes or a failing transform.
    """
    m = spec._compiled.search(document)
    if m is None:
        log.debug("field %s: primary pattern did not match", spec.name)
        return ABSENT
    region = _select(m, spec.group)
    if region is None:
        log.debug("field %s: primary group was empty", spec.name)
        return ABSENT

    sub = spec._compiled_sub
    try:
        if sub is None:
            return _finish(region, spec)

        if spec.many:
            values = [
                _finish(_select(sm, spec.sub_group) or "", spec) for sm in sub.finditer(region)
            ]
            if not values:
                log.debug("field %s: sub pattern found nothing", spec.name)
                return ABSENT
            return values

        sm = sub.search(region)
        if sm is None:
            log.debug("field %s: sub pattern did not match", spec.name)
            return ABSENT
        value = _select(sm, spec.sub_group)
        if value is None:
            return ABSENT
        return _finish(value, spec)
    except UnicodeError as exc:
        log.debug("field %s: cannot decode as %s: %s", spec.name, spec.encoding, exc)
        return ABSENT
    except Exception as exc:
        log.warning("field %s: transform failed: %r", spec.name, exc)
        return ABSENT


def extract(document: str, specs: Sequence[FieldSpec]) -> ExtractionResult:
    """Apply every FieldSpec to the document, in order."""
    fields: dict[str, Any] = {}
    defaults: dict[str, Any] = {}
    for spec in specs:
        fields[spec.name] = extract_field(document, spec)
        defaults[spec.name] = spec.default
    return ExtractionResult(fields, defaults)


def extract_composite(
    document: str,
    groups: Mapping[str, Sequence[FieldSpec]],
) -> ExtractionResult:
    """
    Build a nested result, one sub-result per group (e.g. one per day).

    Groups are independent; a group whose fragments are all missing comes
    back as an all-ABSENT sub-result and does not affect its siblings.
    """
    return ExtractionResult({name: extract(document, specs) for name, specs in groups.items()})


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
