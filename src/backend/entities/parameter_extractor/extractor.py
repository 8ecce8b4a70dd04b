"""Parameter extraction logic.

Deterministic extractors that pull structured values (date ranges,
dimension names, family references, status filters) out of free-text
questions. Every extractor is total: when nothing matches it returns a
defined default instead of raising, so the matching pipeline can always
produce parameters.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import date
from typing import Protocol, runtime_checkable

from dateutil.relativedelta import relativedelta
from models import DateRange, FamilyReference

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = relativedelta(months=6)
DEFAULT_FAMILY_ID = 1
ALL = "all"

# Stoplight dimensions, in scan order
DIMENSIONS: tuple[str, ...] = (
    "health",
    "income",
    "housing",
    "education",
    "transportation",
    "work",
    "services",
    "environment",
    "social",
    "influence",
    "community",
)

_DIMENSION_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (dim, re.compile(rf"\b{dim}\b", re.IGNORECASE)) for dim in DIMENSIONS
)

_PERIOD_RE = re.compile(
    r"\b(?:last|past)\s+(?:(\d+)\s+)?(day|week|month|quarter|year)s?\b",
    re.IGNORECASE,
)

_FAMILY_ID_RE = re.compile(r"\bfamily\s+(?:id\s*)?#?\s*(\d+)", re.IGNORECASE)
_FAMILY_NAMED_RE = re.compile(
    r"\bfamily\s+(?:named|called)\s+[\"']?([A-Za-z][A-Za-z'-]*)",
    re.IGNORECASE,
)
_FAMILY_NAME_RE = re.compile(
    r"\b(?:the\s+)?(?!(?:the|a|an|this|that|my|our|your|each|every|which|what)\b)"
    r"([A-Za-z]+)\s+family\b",
    re.IGNORECASE,
)

_STATUS_CHANGE_RE = re.compile(r"\bfrom\s+red\s+to\s+(yellow|green)\b", re.IGNORECASE)
_STATUS_FILTER_RE = re.compile(r"\b(green|yellow|red)\s+indicators\b", re.IGNORECASE)
_ALL_COUNTRIES_RE = re.compile(r"\bacross\s+(?:all\s+)?countries\b", re.IGNORECASE)
_COUNTRY_RE = re.compile(r"\bin\s+([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*)")
_PROGRAM_RE = re.compile(r"\bour\s+([a-z][a-z\s]*?)\s+program", re.IGNORECASE)


def _period_delta(amount: int, unit: str) -> relativedelta:
    unit = unit.lower()
    if unit == "day":
        return relativedelta(days=amount)
    if unit == "week":
        return relativedelta(weeks=amount)
    if unit == "quarter":
        return relativedelta(months=3 * amount)
    if unit == "year":
        return relativedelta(years=amount)
    return relativedelta(months=amount)


def extract_date_range(text: str, today: date | None = None) -> DateRange:
    """Extract a ``[start, end]`` calendar range ending today.

    Recognises "last/past [N] day(s)/week(s)/month(s)/quarter(s)/year(s)";
    ``N`` defaults to 1 ("last month"). Anything else yields the last six
    months.

    Args:
        text: The user's question.
        today: Reference date (defaults to ``date.today()``).

    Returns:
        Inclusive ``DateRange``.
    """
    end = today or date.today()
    match = _PERIOD_RE.search(text or "")
    delta = DEFAULT_LOOKBACK
    if match:
        amount = int(match.group(1)) if match.group(1) else 1
        delta = _period_delta(amount, match.group(2))

    try:
        start = end - delta
    except (ValueError, OverflowError):
        logger.warning("Date period out of range in query, using default lookback")
        start = end - DEFAULT_LOOKBACK

    return DateRange(start_date=start, end_date=end)


def extract_dimensions(text: str) -> list[str]:
    """Return the stoplight dimensions named in ``text``, or ``["all"]``.

    Matching is whole-word and case-insensitive; results follow the
    ``DIMENSIONS`` order.
    """
    found = [dim for dim, pattern in _DIMENSION_PATTERNS if pattern.search(text or "")]
    return found or [ALL]


@runtime_checkable
class FamilyLookup(Protocol):
    """Resolves a family name to its id."""

    def resolve(self, name: str) -> int | None:
        """Return the id for ``name`` (case-insensitive), or ``None``."""
        ...


class StaticFamilyLookup:
    """``FamilyLookup`` over a fixed name → id table.

    Args:
        families: Mapping of lowercase family name to id.
    """

    DEFAULT_FAMILIES: Mapping[str, int] = {
        "gonzalez": 1,
        "garcia": 2,
        "smith": 3,
        "johnson": 4,
        "lopez": 5,
    }

    def __init__(self, families: Mapping[str, int] | None = None) -> None:
        source = self.DEFAULT_FAMILIES if families is None else families
        self._families = {name.lower(): family_id for name, family_id in source.items()}

    def resolve(self, name: str) -> int | None:
        return self._families.get(name.strip().lower())


_DEFAULT_LOOKUP = StaticFamilyLookup()


def extract_family_reference(
    text: str,
    lookup: FamilyLookup | None = None,
) -> FamilyReference:
    """Extract which family a question is about.

    Tries an explicit id ("family 42", "family id 42", "family #42"), then
    a family name resolved through ``lookup``, then falls back to id 1.
    """
    text = text or ""
    id_match = _FAMILY_ID_RE.search(text)
    if id_match:
        return FamilyReference(family_id=int(id_match.group(1)), source="id")

    name_match = _FAMILY_NAMED_RE.search(text) or _FAMILY_NAME_RE.search(text)
    if name_match:
        name = name_match.group(1)
        resolver = lookup or _DEFAULT_LOOKUP
        try:
            family_id = resolver.resolve(name)
        except Exception:
            logger.exception("Family lookup failed for %r", name)
            family_id = None
        if family_id is not None:
            return FamilyReference(family_id=family_id, source="name", name=name)
        return FamilyReference(family_id=DEFAULT_FAMILY_ID, source="default", name=name)

    return FamilyReference(family_id=DEFAULT_FAMILY_ID)


def extract_status_change(text: str) -> tuple[str, str]:
    """Return ``(from_status, to_status)`` for "from red to yellow/green"."""
    match = _STATUS_CHANGE_RE.search(text or "")
    if match:
        return "red", match.group(1).lower()
    return ALL, ALL


def extract_status_filter(text: str) -> str:
    """Return the indicator color a question filters on, or ``"all"``."""
    match = _STATUS_FILTER_RE.search(text or "")
    return match.group(1).lower() if match else ALL


def extract_country_filter(text: str) -> str:
    """Return a capitalised country name after "in", or ``"all"``."""
    text = text or ""
    if _ALL_COUNTRIES_RE.search(text):
        return ALL
    match = _COUNTRY_RE.search(text)
    return match.group(1).strip() if match else ALL


def extract_program_type(text: str) -> str:
    """Return the program named in "our <name> program", or ``"all"``."""
    match = _PROGRAM_RE.search(text or "")
    return match.group(1).strip().lower() if match else ALL
