"""Static catalogue of parameterized analytics functions.

Templates are grouped by requesting role, then by query type. The
catalogue is built once at import time and never mutated: both levels are
exposed through read-only mappings and the templates themselves are
frozen models.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from models import QueryTemplate

ROLE_MENTOR = "mentor"
ROLE_ORGANIZATION_HEAD = "organization_head"
ROLE_PSP_HEAD = "psp_head"

_CATALOGUE: dict[str, dict[str, QueryTemplate]] = {
    # Mentor / social worker
    ROLE_MENTOR: {
        "similar_families": QueryTemplate(
            function="stoplight_analytics.find_similar_families",
            params=("organization_id", "mentor_id", "family_id", "dimensions"),
            description="Find families with similar needs to a specified family",
            examples=(
                "Find me families with similar needs to the Gonzalez family, "
                "especially regarding income and housing",
                "Which families have similar red indicators to family #2?",
                "Show families with needs like the Garcia family",
            ),
        ),
        "family_red_indicators": QueryTemplate(
            function="stoplight_analytics.get_family_red_indicators",
            params=(
                "organization_id",
                "family_id",
                "from_status",
                "to_status",
                "track_progress",
                "analysis_type",
            ),
            description="Find all red indicators for a specific family or track progress",
            examples=(
                "Show me all red indicators for Family 2",
                "Show me all my families who have improved at least one indicator "
                "from red to yellow in the last 3 months",
                "Which indicators are taking my families the longest time to complete in surveys?",
            ),
        ),
        "intervention_recommender": QueryTemplate(
            function="stoplight_analytics.recommend_interventions",
            params=("organization_id", "family_id", "dimensions"),
            description=(
                "Recommend interventions based on similar family profiles and success patterns"
            ),
            examples=(
                "What interventions have worked best for families like the Garcias "
                "who have red indicators in income and transportation?",
                "Recommend interventions for the Smith family's housing issues",
                "What programs should I suggest to families with transportation problems?",
            ),
        ),
    },
    # Organization head
    ROLE_ORGANIZATION_HEAD: {
        "mentor_performance": QueryTemplate(
            function="stoplight_analytics.get_mentor_performance",
            params=("organization_id", "start_date", "end_date"),
            description="View performance metrics for mentors",
            examples=(
                "Which mentors completed the most surveys last month "
                "and what was their average survey time?",
                "Show me mentor performance over the last 6 months",
                "Which social workers have improved the most families in the past quarter?",
            ),
        ),
        "org_improvement_trends": QueryTemplate(
            function="stoplight_analytics.get_organization_improvement_trends",
            params=(
                "organization_id",
                "start_date",
                "end_date",
                "program_type",
                "analysis_type",
                "dimensions",
            ),
            description="Analyze improvement trends across the organization",
            examples=(
                "Show me which families have improved the most after receiving "
                "our financial literacy program",
                "Where should we focus our resources next month based on the most "
                "common red indicators?",
                "How does our organization compare to others in improving education indicators?",
            ),
        ),
        "resource_allocation": QueryTemplate(
            function="stoplight_analytics.optimize_resource_allocation",
            params=("organization_id", "start_date", "end_date", "dimensions"),
            description="Suggests resource allocation based on red indicator patterns",
            examples=(
                "Where should we focus our resources next month?",
                "Which programs need more funding based on current results?",
                "What areas should we prioritize for the next quarter?",
            ),
        ),
    },
    # PSP head / data team
    ROLE_PSP_HEAD: {
        "country_comparison": QueryTemplate(
            function="stoplight_analytics.compare_countries",
            params=(
                "indicator_ids",
                "start_date",
                "end_date",
                "dimensions",
                "status_filter",
                "analysis_type",
            ),
            description="Compare indicators across different countries",
            examples=(
                "Which countries have the highest percentage of green indicators "
                "in the Health dimension?",
                "Compare the Housing and Income dimensions across all countries "
                "to see which has more red indicators",
                "Show me a comparison of education indicators between Paraguay and Colombia",
            ),
        ),
        "global_red_distribution": QueryTemplate(
            function="stoplight_analytics.get_global_red_distribution",
            params=("start_date", "end_date", "dimensions", "country_filter", "filter_type"),
            description="View distribution of red indicators globally",
            examples=(
                "Show me how many families have improved from red to green on income "
                "indicators across all countries in the last 6 months",
                "What are the most resistant indicators that stay red even after "
                "follow-up surveys?",
                "What are the most common red indicators globally?",
            ),
        ),
        "program_effectiveness": QueryTemplate(
            function="stoplight_analytics.analyze_program_effectiveness",
            params=("start_date", "end_date", "program_types", "dimensions"),
            description="Analyzes effectiveness of different program types across regions",
            examples=(
                "Which intervention programs are most effective at improving housing indicators?",
                "Compare effectiveness of financial literacy programs across different regions",
                "What program types show the highest success rates globally?",
            ),
        ),
    },
}


def _freeze(
    catalogue: Mapping[str, Mapping[str, QueryTemplate]],
) -> Mapping[str, Mapping[str, QueryTemplate]]:
    return MappingProxyType({
        role: MappingProxyType(dict(templates)) for role, templates in catalogue.items()
    })


QUERY_TEMPLATES: Mapping[str, Mapping[str, QueryTemplate]] = _freeze(_CATALOGUE)


class TemplateRegistry:
    """Read-only lookup over a role → query type → template catalogue.

    Args:
        templates: Catalogue to expose. Defaults to ``QUERY_TEMPLATES``.
    """

    def __init__(
        self,
        templates: Mapping[str, Mapping[str, QueryTemplate]] | None = None,
    ) -> None:
        self._templates = QUERY_TEMPLATES if templates is None else _freeze(templates)

    def lookup(self, role: str, query_type: str) -> QueryTemplate | None:
        """Return the template for ``(role, query_type)``, or ``None``.

        ``None`` is an expected outcome: roles do not define every query
        type, and matchers may name one that does not exist.
        """
        return self._templates.get(role, {}).get(query_type)

    def templates_for(self, role: str) -> list[tuple[str, QueryTemplate]]:
        """Return ``(query_type, template)`` pairs for ``role`` in declaration order."""
        return list(self._templates.get(role, {}).items())

    def roles(self) -> list[str]:
        """Return every role that has a template set."""
        return list(self._templates)
