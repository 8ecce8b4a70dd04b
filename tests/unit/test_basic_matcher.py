"""Unit tests for the keyword-overlap fallback matcher."""

from datetime import date

import pytest
from entities.query_matcher import BasicMatcher
from entities.query_matcher.basic import (
    DESCRIPTION_CONFIDENCE,
    EXAMPLE_CONFIDENCE,
    FALLBACK_CONFIDENCE,
)
from entities.template_registry import QUERY_TEMPLATES, TemplateRegistry
from models import QueryTemplate, RequestContext

from tests.conftest import FIXED_TODAY


@pytest.fixture
def matcher(registry: TemplateRegistry) -> BasicMatcher:
    return BasicMatcher(registry, clock=lambda: FIXED_TODAY)


ALL_EXAMPLES = [
    (role, query_type, example)
    for role, templates in QUERY_TEMPLATES.items()
    for query_type, template in templates.items()
    for example in template.examples
]


class TestExampleTier:
    @pytest.mark.parametrize(("role", "query_type", "example"), ALL_EXAMPLES)
    def test_example_phrase_matches_own_template(
        self, matcher: BasicMatcher, role: str, query_type: str, example: str
    ) -> None:
        result = matcher.match(example, role)
        assert result is not None
        assert result.query_type == query_type
        assert result.confidence == EXAMPLE_CONFIDENCE
        assert result.reasoning == "keyword overlap with example queries"
        assert result.matcher == "basic"

    def test_mentor_performance_question(self, matcher: BasicMatcher) -> None:
        result = matcher.match(
            "Which mentors completed the most surveys last month?",
            "organization_head",
            RequestContext(organization_id=1, user_id=1),
        )
        assert result is not None
        assert result.query_type == "mentor_performance"
        assert result.confidence == EXAMPLE_CONFIDENCE
        assert result.params["organization_id"] == 1
        assert result.params["start_date"] == date(2025, 2, 28)
        assert result.params["end_date"] == FIXED_TODAY


class TestDescriptionTier:
    def test_description_keywords(self) -> None:
        registry = TemplateRegistry({
            "tester": {
                "first": QueryTemplate(function="s.first", description="unrelated words"),
                "second": QueryTemplate(
                    function="s.second",
                    description="Analyze regional vaccination coverage",
                ),
            }
        })
        result = BasicMatcher(registry, clock=lambda: FIXED_TODAY).match(
            "vaccination coverage please", "tester"
        )
        assert result is not None
        assert result.query_type == "second"
        assert result.confidence == DESCRIPTION_CONFIDENCE


class TestFallbackTier:
    def test_unrelated_query_uses_first_template(self, matcher: BasicMatcher) -> None:
        result = matcher.match("xyzzy", "psp_head")
        assert result is not None
        assert result.query_type == "country_comparison"
        assert result.confidence == FALLBACK_CONFIDENCE
        assert result.reasoning == "no clear match found, using default function"

    def test_empty_query(self, matcher: BasicMatcher) -> None:
        result = matcher.match("", "mentor")
        assert result is not None
        assert result.query_type == "similar_families"
        assert result.confidence == FALLBACK_CONFIDENCE

    def test_unknown_role_returns_none(self, matcher: BasicMatcher) -> None:
        assert matcher.match("anything", "admin") is None


class TestParams:
    def test_context_defaults(self, matcher: BasicMatcher) -> None:
        result = matcher.match("xyzzy", "mentor", RequestContext(organization_id=9, user_id=3))
        assert result is not None
        assert result.params["organization_id"] == 9
        assert result.params["mentor_id"] == 3
        assert result.params["start_date"] == date(2024, 9, 30)

    def test_deterministic(self, matcher: BasicMatcher) -> None:
        query = "Where should we focus our resources?"
        first = matcher.match(query, "organization_head")
        second = matcher.match(query, "organization_head")
        assert first == second

    async def test_try_match_delegates(self, matcher: BasicMatcher) -> None:
        result = await matcher.try_match("xyzzy", "mentor", RequestContext())
        assert result is not None
        assert result.query_type == "similar_families"
