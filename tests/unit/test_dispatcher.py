"""Unit tests for the query dispatcher.

Matchers and the SQL executor are in-memory fakes; every test runs
without a database or an LLM.
"""

from datetime import date

import pytest
from entities.dispatcher import EXECUTING_STEP, MATCHING_STEP, QueryDispatcher, bind_parameters
from entities.shared.errors import (
    ClassificationFailure,
    ExecutionFailure,
    MatcherError,
    UnknownTemplate,
)
from entities.template_registry import TemplateRegistry
from models import QueryTemplate, RequestContext

from tests.conftest import FakeMatcher, FakeSqlExecutor, SpyReporter, make_match


class TestBindParameters:
    def test_declaration_order_and_missing_as_none(self) -> None:
        template = QueryTemplate(function="s.f", params=("a", "b", "c"))
        assert bind_parameters(template, {"c": 3, "a": 1}) == [1, None, 3]

    def test_iso_dates_coerced(self) -> None:
        template = QueryTemplate(function="s.f", params=("start_date", "label"))
        values = bind_parameters(template, {"start_date": "2025-01-31", "label": "2025-1-1"})
        assert values == [date(2025, 1, 31), "2025-1-1"]

    def test_invalid_iso_date_left_alone(self) -> None:
        template = QueryTemplate(function="s.f", params=("start_date",))
        assert bind_parameters(template, {"start_date": "2025-13-45"}) == ["2025-13-45"]

    def test_extra_params_ignored(self) -> None:
        template = QueryTemplate(function="s.f", params=("a",))
        assert bind_parameters(template, {"a": 1, "zzz": 2}) == [1]


class TestMatcherChain:
    async def test_first_usable_match_wins(self, registry: TemplateRegistry) -> None:
        first = FakeMatcher("first", make_match("mentor_performance"))
        second = FakeMatcher("second", make_match("resource_allocation"))
        dispatcher = QueryDispatcher([first, second], registry, FakeSqlExecutor())

        result = await dispatcher.handle("q", "organization_head")

        assert result.query_type == "mentor_performance"
        assert result.matcher == "first"
        assert second.calls == []

    async def test_error_and_none_fall_through(self, registry: TemplateRegistry) -> None:
        failing = FakeMatcher("llm", error=MatcherError("timeout"))
        declining = FakeMatcher("pattern", result=None)
        fallback = FakeMatcher("basic", make_match("resource_allocation", confidence=20))
        dispatcher = QueryDispatcher([failing, declining, fallback], registry, FakeSqlExecutor())

        result = await dispatcher.handle("q", "organization_head")

        assert result.query_type == "resource_allocation"
        assert result.matcher == "basic"
        assert len(failing.calls) == len(declining.calls) == len(fallback.calls) == 1

    async def test_all_decline(self, registry: TemplateRegistry) -> None:
        dispatcher = QueryDispatcher([FakeMatcher(result=None)], registry, FakeSqlExecutor())
        with pytest.raises(ClassificationFailure) as exc_info:
            await dispatcher.handle("q", "organization_head")
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Could not determine query type from your question."

    async def test_unexpected_matcher_error_propagates(self, registry: TemplateRegistry) -> None:
        dispatcher = QueryDispatcher(
            [FakeMatcher(error=KeyError("bug"))], registry, FakeSqlExecutor()
        )
        with pytest.raises(KeyError):
            await dispatcher.handle("q", "organization_head")


class TestTemplateResolution:
    async def test_unknown_template(self, registry: TemplateRegistry) -> None:
        sql = FakeSqlExecutor()
        dispatcher = QueryDispatcher([FakeMatcher(result=make_match("nope"))], registry, sql)
        with pytest.raises(UnknownTemplate) as exc_info:
            await dispatcher.handle("q", "organization_head")
        assert exc_info.value.message == "Query template not found"
        assert sql.calls == []

    async def test_binds_context_defaults_and_nulls(self) -> None:
        registry = TemplateRegistry({
            "organization_head": {
                "probe": QueryTemplate(function="s.probe", params=("organization_id", "start_date"))
            }
        })
        sql = FakeSqlExecutor(rows=[{"n": 1}])
        dispatcher = QueryDispatcher([FakeMatcher(result=make_match("probe"))], registry, sql)

        result = await dispatcher.handle(
            "q", "organization_head", RequestContext(organization_id=5, user_id=2)
        )

        assert sql.calls == [("SELECT * FROM s.probe($1, $2)", [5, None])]
        assert result.param_values == [5, None]
        assert result.rows == [{"n": 1}]

    async def test_match_params_override_context(self, registry: TemplateRegistry) -> None:
        sql = FakeSqlExecutor()
        match = make_match(params={"organization_id": 3, "start_date": "2025-01-01"})
        dispatcher = QueryDispatcher([FakeMatcher(result=match)], registry, sql)

        await dispatcher.handle("q", "organization_head", RequestContext(organization_id=9))

        query, params = sql.calls[0]
        assert query == "SELECT * FROM stoplight_analytics.get_mentor_performance($1, $2, $3)"
        assert params == [3, date(2025, 1, 1), None]


class TestExecution:
    async def test_result_metadata(self, registry: TemplateRegistry) -> None:
        sql = FakeSqlExecutor(rows=[{"mentor": "a", "surveys": 3}])
        match = make_match(confidence=77, reasoning="because")
        dispatcher = QueryDispatcher([FakeMatcher(result=match)], registry, sql)

        result = await dispatcher.handle("q", "organization_head")

        assert result.function == "stoplight_analytics.get_mentor_performance"
        assert result.description == "View performance metrics for mentors"
        assert result.confidence == 77
        assert result.reasoning == "because"
        response = result.to_response().model_dump(mode="json", by_alias=True)
        assert response["meta"]["queryType"] == "mentor_performance"
        assert response["meta"]["paramValues"] == [1, None, None]
        assert response["data"] == [{"mentor": "a", "surveys": 3}]

    async def test_database_error(self, registry: TemplateRegistry) -> None:
        sql = FakeSqlExecutor(error=RuntimeError("relation does not exist"))
        dispatcher = QueryDispatcher([FakeMatcher(result=make_match())], registry, sql)
        with pytest.raises(ExecutionFailure) as exc_info:
            await dispatcher.handle("q", "organization_head")
        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestConfidenceGate:
    async def test_disabled_by_default(self, registry: TemplateRegistry) -> None:
        dispatcher = QueryDispatcher(
            [FakeMatcher(result=make_match(confidence=1))], registry, FakeSqlExecutor()
        )
        result = await dispatcher.handle("q", "organization_head")
        assert result.confidence == 1

    async def test_below_threshold(self, registry: TemplateRegistry) -> None:
        sql = FakeSqlExecutor()
        dispatcher = QueryDispatcher(
            [FakeMatcher(result=make_match(confidence=20))], registry, sql, min_confidence=50
        )
        with pytest.raises(ClassificationFailure):
            await dispatcher.handle("q", "organization_head")
        assert sql.calls == []


class TestReporter:
    async def test_steps_reported(self, registry: TemplateRegistry) -> None:
        reporter = SpyReporter()
        dispatcher = QueryDispatcher([FakeMatcher(result=make_match())], registry, FakeSqlExecutor())

        await dispatcher.handle("q", "organization_head", reporter=reporter)

        assert reporter.events == [
            {"step": MATCHING_STEP, "status": "started"},
            {"step": MATCHING_STEP, "status": "completed"},
            {"step": EXECUTING_STEP, "status": "started"},
            {"step": EXECUTING_STEP, "status": "completed"},
        ]

    async def test_step_closed_on_failure(self, registry: TemplateRegistry) -> None:
        reporter = SpyReporter()
        dispatcher = QueryDispatcher(
            [FakeMatcher(result=make_match())],
            registry,
            FakeSqlExecutor(error=RuntimeError("down")),
        )
        with pytest.raises(ExecutionFailure):
            await dispatcher.handle("q", "organization_head", reporter=reporter)
        assert reporter.events[-1] == {"step": EXECUTING_STEP, "status": "completed"}
