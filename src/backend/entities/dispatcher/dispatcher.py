"""Query dispatcher: classify a question, bind its template, execute it.

The dispatcher walks an ordered chain of matchers, resolves the chosen
template in the registry, binds parameters positionally and runs the
resulting ``SELECT * FROM <function>(...)`` through a ``SqlExecutor``.
It holds no per-request state, so one instance serves concurrent
requests.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from entities.shared.clause_builder import function_call
from entities.shared.errors import (
    ClassificationFailure,
    ExecutionFailure,
    MatcherError,
    UnknownTemplate,
)
from entities.shared.protocols import Matcher, NoOpReporter, ProgressReporter, SqlExecutor
from entities.template_registry import TemplateRegistry
from models import MatchResult, QueryResult, QueryTemplate, RequestContext

logger = logging.getLogger(__name__)

MATCHING_STEP = "Matching query"
EXECUTING_STEP = "Executing query"

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _coerce(value: Any) -> Any:  # noqa: ANN401
    """Turn ``YYYY-MM-DD`` strings into dates; asyncpg will not cast text."""
    if isinstance(value, str) and _ISO_DATE_RE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return value
    return value


def bind_parameters(template: QueryTemplate, params: Mapping[str, Any]) -> list[Any]:
    """Return one value per template parameter, in declaration order.

    Parameters the match did not supply bind as ``None`` (SQL ``NULL``) so
    the database function applies its own default.
    """
    return [_coerce(params.get(name)) for name in template.params]


class QueryDispatcher:
    """Coordinates matching, template lookup and execution.

    Args:
        matchers: Matchers tried in order; each is tried at most once.
        registry: Template catalogue used to resolve match results.
        sql_executor: Executes the bound function call.
        min_confidence: Reject matches below this score. ``None`` accepts
            every match.
    """

    def __init__(
        self,
        matchers: Sequence[Matcher],
        registry: TemplateRegistry,
        sql_executor: SqlExecutor,
        min_confidence: float | None = None,
    ) -> None:
        self._matchers = tuple(matchers)
        self._registry = registry
        self._sql_executor = sql_executor
        self._min_confidence = min_confidence

    @property
    def matchers(self) -> tuple[Matcher, ...]:
        return self._matchers

    async def match(self, query: str, role: str, context: RequestContext) -> MatchResult:
        """Return the first usable match from the matcher chain.

        Raises:
            ClassificationFailure: If every matcher declines or fails, or the
                winning match is below ``min_confidence``.
        """
        for matcher in self._matchers:
            try:
                result = await matcher.try_match(query, role, context)
            except MatcherError as exc:
                logger.warning("Matcher '%s' failed: %s", matcher.name, exc)
                continue
            if result is None:
                logger.info("Matcher '%s' returned no match", matcher.name)
                continue

            if self._min_confidence is not None and result.confidence < self._min_confidence:
                logger.info(
                    "Match '%s' from '%s' below confidence threshold (%.0f < %.0f)",
                    result.query_type,
                    matcher.name,
                    result.confidence,
                    self._min_confidence,
                )
                raise ClassificationFailure()

            if not result.matcher:
                result = result.model_copy(update={"matcher": matcher.name})
            return result

        raise ClassificationFailure()

    async def handle(
        self,
        query: str,
        role: str,
        context: RequestContext | None = None,
        reporter: ProgressReporter | None = None,
    ) -> QueryResult:
        """Answer ``query`` for ``role``.

        Args:
            query: Natural-language question.
            role: Requesting user role.
            context: Caller identity for default parameters.
            reporter: Receives step start/end events for this request.

        Returns:
            The executed rows and match metadata.

        Raises:
            ClassificationFailure: No matcher produced a usable result.
            UnknownTemplate: The match names a type the role lacks.
            ExecutionFailure: The database call failed.
        """
        context = context or RequestContext()
        reporter = reporter or NoOpReporter()
        logger.info("Handling query for role '%s': %s", role, query[:100])

        reporter.step_start(MATCHING_STEP)
        try:
            match = await self.match(query, role, context)
        finally:
            reporter.step_end(MATCHING_STEP)

        template = self._registry.lookup(role, match.query_type)
        if template is None:
            logger.warning("No template '%s' for role '%s'", match.query_type, role)
            raise UnknownTemplate()

        params = {**context.default_params(), **match.params}
        values = bind_parameters(template, params)
        statement = function_call(template.function, values)
        logger.info(
            "Matched '%s' via %s (confidence=%.0f): %s",
            match.query_type,
            match.matcher,
            match.confidence,
            statement.display_sql[:200],
        )

        reporter.step_start(EXECUTING_STEP)
        try:
            rows = await self._sql_executor.execute(statement.sql, statement.params)
        except Exception as exc:
            logger.exception("Execution of %s failed", template.function)
            raise ExecutionFailure() from exc
        finally:
            reporter.step_end(EXECUTING_STEP)

        return QueryResult(
            rows=rows,
            query_type=match.query_type,
            function=template.function,
            description=template.description,
            param_values=values,
            confidence=match.confidence,
            reasoning=match.reasoning,
            matcher=match.matcher,
        )
