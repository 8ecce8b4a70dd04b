"""Helpers shared by the query matchers."""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from entities.parameter_extractor import extract_date_range
from models import RequestContext

_WORD_RE = re.compile(r"\w+")


def words(text: str) -> list[str]:
    """Lowercase word tokens of ``text`` (punctuation dropped)."""
    return _WORD_RE.findall((text or "").lower())


def significant_words(text: str, min_length: int = 4) -> set[str]:
    """Distinct words of at least ``min_length`` characters."""
    return {word for word in words(text) if len(word) >= min_length}


def with_defaults(params: dict[str, Any], context: RequestContext) -> dict[str, Any]:
    """Fill context defaults for keys that are absent or ``None``.

    Values already present in ``params`` are never overwritten.
    """
    merged = dict(params)
    for name, value in context.default_params().items():
        if merged.get(name) is None:
            merged[name] = value
    return merged


def default_params(query: str, context: RequestContext, today: date) -> dict[str, Any]:
    """Context defaults plus the date range implied by ``query``."""
    return {
        **context.default_params(),
        **extract_date_range(query, today=today).as_params(),
    }
