"""Unit tests for the LLM-backed query matcher.

The ChatAgent is replaced by a ``MagicMock`` whose ``run`` returns a canned
response; no Azure credentials or network access are needed.
"""

import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from entities.query_matcher import LLMMatcher, build_matching_prompt
from entities.shared.errors import MatcherError
from entities.template_registry import TemplateRegistry
from models import RequestContext

from tests.conftest import FIXED_TODAY, make_agent


def _llm_json(**overrides: object) -> str:
    payload = {
        "queryType": "mentor_performance",
        "params": {"start_date": "2025-01-01", "end_date": "2025-01-31"},
        "confidence": 88,
        "reasoning": "asks about mentor survey counts",
    }
    payload.update(overrides)
    return json.dumps(payload)


def _matcher(registry: TemplateRegistry, response_text: str) -> LLMMatcher:
    return LLMMatcher(make_agent(response_text), registry, clock=lambda: FIXED_TODAY)


class TestPrompt:
    def test_lists_every_template(self, registry: TemplateRegistry) -> None:
        prompt = build_matching_prompt(
            "Which mentors did best?", "organization_head", registry.templates_for("organization_head")
        )
        assert "USER TYPE: organization_head" in prompt
        assert 'USER QUERY: "Which mentors did best?"' in prompt
        for query_type in ("mentor_performance", "org_improvement_trends", "resource_allocation"):
            assert f"Query Type: {query_type}" in prompt
        assert "Parameters: organization_id, start_date, end_date" in prompt
        assert '"queryType"' in prompt


class TestSuccess:
    async def test_valid_response(self, registry: TemplateRegistry, context: RequestContext) -> None:
        matcher = _matcher(registry, _llm_json())
        result = await matcher.try_match("Which mentors did best?", "organization_head", context)

        assert result is not None
        assert result.query_type == "mentor_performance"
        assert result.confidence == 88
        assert result.matcher == "llm"
        assert result.params["start_date"] == "2025-01-01"
        assert result.params["organization_id"] == 7
        assert result.params["mentor_id"] == 42

    async def test_runs_agent_on_new_thread(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        agent = make_agent(_llm_json())
        matcher = LLMMatcher(agent, registry, clock=lambda: FIXED_TODAY)
        await matcher.try_match("q", "organization_head", context)

        agent.get_new_thread.assert_called_once()
        agent.run.assert_awaited_once()
        assert agent.run.call_args.kwargs["thread"] is agent.get_new_thread.return_value

    async def test_model_values_not_overwritten(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        matcher = _matcher(registry, _llm_json(params={"organization_id": 99}))
        result = await matcher.try_match("q", "organization_head", context)
        assert result is not None
        assert result.params["organization_id"] == 99

    async def test_missing_dates_filled(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        matcher = _matcher(registry, _llm_json(params={"start_date": "2025-01-01"}))
        result = await matcher.try_match("surveys in the last 2 weeks", "organization_head", context)
        assert result is not None
        assert result.params["start_date"] == "2025-01-01"
        assert result.params["end_date"] == FIXED_TODAY

    async def test_dates_not_added_when_not_declared(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        matcher = _matcher(registry, _llm_json(queryType="similar_families", params={}))
        result = await matcher.try_match("similar families", "mentor", context)
        assert result is not None
        assert "start_date" not in result.params

    async def test_fenced_response_with_percent_confidence(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        text = f"Sure!\n```json\n{_llm_json(confidence='75%', params=None)}\n```"
        result = await _matcher(registry, text).try_match("q", "organization_head", context)
        assert result is not None
        assert result.confidence == 75
        assert result.params["start_date"] == date(2024, 9, 30)

    async def test_json_after_preamble_message(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        preamble = MagicMock(contents=[MagicMock(text="Let me look at the functions.")])
        answer = MagicMock(contents=[MagicMock(text=_llm_json(confidence=70))])
        agent = make_agent()
        agent.run = AsyncMock(return_value=MagicMock(messages=[preamble, answer]))

        matcher = LLMMatcher(agent, registry, clock=lambda: FIXED_TODAY)
        result = await matcher.try_match("q", "organization_head", context)

        assert result is not None
        assert result.query_type == "mentor_performance"
        assert result.confidence == 70


class TestFailures:
    async def test_agent_error(self, registry: TemplateRegistry, context: RequestContext) -> None:
        matcher = LLMMatcher(make_agent(error=RuntimeError("boom")), registry)
        with pytest.raises(MatcherError):
            await matcher.try_match("q", "organization_head", context)

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "I cannot help with that.",
            '{"params": {}}',
            '{"queryType": "", "params": {}}',
            '{"queryType": "x", "confidence": "high"}',
            '{"queryType": "mentor_performance", "confidence": NaN}',
            '{"queryType": "mentor_performance", "confidence": -Infinity}',
            '{"queryType": "mentor_performance", "confidence": "nan"}',
        ],
    )
    async def test_unusable_response(
        self, registry: TemplateRegistry, context: RequestContext, text: str
    ) -> None:
        with pytest.raises(MatcherError):
            await _matcher(registry, text).try_match("q", "organization_head", context)

    async def test_unknown_query_type(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        matcher = _matcher(registry, _llm_json(queryType="country_comparison"))
        with pytest.raises(MatcherError, match="not found"):
            await matcher.try_match("q", "organization_head", context)

    async def test_role_without_templates(
        self, registry: TemplateRegistry, context: RequestContext
    ) -> None:
        agent = make_agent(_llm_json())
        result = await LLMMatcher(agent, registry).try_match("q", "admin", context)
        assert result is None
        agent.run.assert_not_awaited()
