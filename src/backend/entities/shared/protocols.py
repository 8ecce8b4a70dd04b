"""Protocol interfaces for I/O boundaries.

These protocols enable dependency injection for testability.
Production implementations wrap the asyncpg pool and the Azure AI agent;
test fakes return canned data with zero network or filesystem access.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, runtime_checkable

from models import MatchResult, RequestContext

logger = logging.getLogger(__name__)


@runtime_checkable
class Matcher(Protocol):
    """Maps a natural-language question to a query type and parameters.

    Implementations return ``None`` when they have no answer and raise
    ``MatcherError`` on transient failures; either way the dispatcher
    moves on to the next matcher in its chain.
    """

    name: str

    async def try_match(
        self,
        query: str,
        role: str,
        context: RequestContext,
    ) -> MatchResult | None:
        """Classify ``query`` for ``role``.

        Args:
            query: Natural-language question from the user.
            role: Requesting user role (scopes the candidate templates).
            context: Caller identity supplying default parameter values.

        Returns:
            A ``MatchResult`` or ``None``.
        """
        ...


@runtime_checkable
class SqlExecutor(Protocol):
    """Executes parameterised SQL against the database.

    Raises on failure; returns JSON-safe row dicts on success.
    """

    async def execute(
        self,
        query: str,
        params: list[Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a SQL query.

        Args:
            query: SQL statement with ``$n`` placeholders.
            params: Bind-parameter values (or ``None``).

        Returns:
            Result rows as dicts keyed by column name.
        """
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Reports step-level progress of a request."""

    def step_start(self, step: str) -> None:
        """Signal that a named step has started.

        Args:
            step: Human-readable step label.
        """
        ...

    def step_end(self, step: str) -> None:
        """Signal that a named step has completed.

        Args:
            step: Human-readable step label (must match a prior start).
        """
        ...


# ---------------------------------------------------------------------------
# Concrete implementations
# ---------------------------------------------------------------------------


class NoOpReporter:
    """ProgressReporter that silently discards all events.

    Useful in tests and contexts where nobody consumes step timings.
    """

    def step_start(self, step: str) -> None:
        """No-op."""

    def step_end(self, step: str) -> None:
        """No-op."""


class LoggingReporter:
    """ProgressReporter that logs each step's duration at DEBUG level."""

    def __init__(self) -> None:
        self._start_times: dict[str, float] = {}

    def step_start(self, step: str) -> None:
        self._start_times[step] = time.perf_counter()

    def step_end(self, step: str) -> None:
        start_time = self._start_times.pop(step, None)
        if start_time is None:
            return
        logger.debug("%s took %d ms", step, int((time.perf_counter() - start_time) * 1000))
