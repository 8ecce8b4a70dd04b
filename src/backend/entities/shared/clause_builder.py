"""Positional-parameter SQL assembly.

Fragments are written with ``?`` markers and appended together with the
values they bind. Placeholder numbers (``$1``, ``$2``, ...) are assigned
only in ``build()``, so optional clauses can be added or skipped in any
combination without the placeholders and the value list drifting apart.

This module is intentionally free of database drivers so that it can be
unit-tested without mocking.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

MARKER = "?"
_MARKER_RE: re.Pattern[str] = re.compile(re.escape(MARKER))
_PLACEHOLDER_RE: re.Pattern[str] = re.compile(r"\$(\d+)")


@dataclass(frozen=True, slots=True)
class ParameterizedQuery:
    """A rendered statement and the values bound to its placeholders.

    Attributes:
        sql: SQL with ``$n`` placeholders for execution.
        params: Ordered values; ``params[i]`` binds ``$i+1``.
        display_sql: SQL with literal values inlined (for logging only).
    """

    sql: str
    params: list[Any] = field(default_factory=list)
    display_sql: str = ""

    @property
    def placeholder_count(self) -> int:
        """Number of distinct ``$n`` placeholders in ``sql``."""
        return len(set(_PLACEHOLDER_RE.findall(self.sql)))


class ClauseBuilder:
    """Accumulates ``(fragment, values)`` pairs and renders them once.

    Usage::

        builder = ClauseBuilder("SELECT * FROM t WHERE a = ?", 1)
        builder.append_if(country, " AND country = ?", country)
        query = builder.build()
    """

    def __init__(self, fragment: str = "", *values: Any) -> None:  # noqa: ANN401
        self._parts: list[tuple[str, tuple[Any, ...]]] = []
        if fragment or values:
            self.append(fragment, *values)

    def append(self, fragment: str, *values: Any) -> ClauseBuilder:  # noqa: ANN401
        """Append a fragment binding one value per ``?`` marker.

        Raises:
            ValueError: If the marker count differs from ``len(values)``.
        """
        markers = len(_MARKER_RE.findall(fragment))
        if markers != len(values):
            raise ValueError(
                f"Fragment has {markers} placeholder(s) but {len(values)} value(s) "
                f"were supplied: {fragment.strip()[:80]!r}"
            )
        self._parts.append((fragment, tuple(values)))
        return self

    def append_if(self, condition: object, fragment: str, *values: Any) -> ClauseBuilder:  # noqa: ANN401
        """Append ``fragment`` only when ``condition`` is truthy."""
        if condition:
            self.append(fragment, *values)
        return self

    def extend(self, other: ClauseBuilder) -> ClauseBuilder:
        """Append every fragment of ``other``, binding its values again."""
        self._parts.extend(other._parts)  # noqa: SLF001
        return self

    def build(self) -> ParameterizedQuery:
        """Render ``$n`` placeholders in append order."""
        sql_parts: list[str] = []
        display_parts: list[str] = []
        params: list[Any] = []

        for fragment, values in self._parts:
            pieces = fragment.split(MARKER)
            sql_piece = pieces[0]
            display_piece = pieces[0]
            for value, tail in zip(values, pieces[1:], strict=True):
                params.append(value)
                sql_piece += f"${len(params)}{tail}"
                display_piece += f"{_display_literal(value)}{tail}"
            sql_parts.append(sql_piece)
            display_parts.append(display_piece)

        return ParameterizedQuery(
            sql="".join(sql_parts),
            params=params,
            display_sql="".join(display_parts),
        )


def _display_literal(value: Any) -> str:  # noqa: ANN401
    """Render a bound value as a SQL literal for log output."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return f"'{value.isoformat()}'"
    if isinstance(value, (list, tuple)):
        return "ARRAY[" + ", ".join(_display_literal(v) for v in value) + "]"
    return "'" + str(value).replace("'", "''") + "'"


def function_call(function: str, values: list[Any]) -> ParameterizedQuery:
    """Build ``SELECT * FROM function($1, ..., $n)`` for positional values.

    ``function`` must come from trusted configuration; only ``values`` are
    bound.
    """
    markers = ", ".join(MARKER for _ in values)
    return ClauseBuilder(f"SELECT * FROM {function}({markers})", *values).build()
