"""PSP tool runners: validated request in, camelCase JSON out.

Each runner executes its query through a ``SqlExecutor`` and maps the
rows to the response shape the PSP clients consume. ``PSP_TOOLS`` maps
the endpoint slug to its request model and runner so the HTTP layer can
serve every tool through one handler.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from entities.psp_tools import queries
from entities.shared.clause_builder import ParameterizedQuery
from entities.shared.protocols import SqlExecutor
from models import (
    CompareIndicatorStatusByCountryRequest,
    DiscoverAvailableDataRequest,
    FindCommonRedIndicatorsRequest,
    FindResistantIndicatorsRequest,
    FindSimilarFamiliesByNeedsRequest,
    MentorPerformanceSummaryRequest,
    TrackIndicatorImprovementRequest,
    TrackMentorFamilyProgressRequest,
)
from pydantic import BaseModel

logger = logging.getLogger(__name__)


def _int(value: Any) -> int:  # noqa: ANN401
    """Truncate a numeric column to int; ``None`` and junk become 0."""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _number(value: Any) -> float:  # noqa: ANN401
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


async def _fetch(executor: SqlExecutor, query: ParameterizedQuery) -> list[dict[str, Any]]:
    logger.debug("PSP query: %s", query.display_sql)
    return await executor.execute(query.sql, query.params)


async def track_indicator_improvement(
    executor: SqlExecutor,
    request: TrackIndicatorImprovementRequest,
) -> dict[str, Any]:
    rows = await _fetch(executor, queries.track_indicator_improvement(request))
    row = rows[0] if rows else {}
    return {
        "improvedCount": _int(row.get("improved_count")),
        "timeToImprove": {
            "minDays": _int(row.get("min_days")),
            "maxDays": _int(row.get("max_days")),
            "avgDays": _int(row.get("avg_days")),
        },
    }


async def compare_indicator_status_by_country(
    executor: SqlExecutor,
    request: CompareIndicatorStatusByCountryRequest,
) -> list[dict[str, Any]]:
    rows = await _fetch(executor, queries.compare_indicator_status_by_country(request))
    return [{"countryCode": row.get("country"), "value": _number(row.get("value"))} for row in rows]


async def find_resistant_indicators(
    executor: SqlExecutor,
    request: FindResistantIndicatorsRequest,
) -> list[dict[str, Any]]:
    rows = await _fetch(executor, queries.find_resistant_indicators(request))
    return [
        {
            "familyId": row.get("family_id"),
            "familyName": row.get("family_name"),
            "indicatorCodeName": row.get("indicator_code_name"),
            "indicatorShortName": row.get("indicator_short_name"),
            "timesResistantColor": _int(row.get("times_resistant_color")),
            "firstResistantDate": row.get("first_resistant_date"),
            "lastResistantDate": row.get("last_resistant_date"),
        }
        for row in rows
    ]


async def find_similar_families_by_needs(
    executor: SqlExecutor,
    request: FindSimilarFamiliesByNeedsRequest,
) -> list[dict[str, Any]]:
    """Two-step lookup: the reference family's indicators, then matching families.

    Returns an empty list without a second query when the reference family
    has no indicator in the target color.
    """
    reference_rows = await _fetch(executor, queries.reference_family_indicators(request))
    indicator_codes = [row["code_name"] for row in reference_rows if row.get("code_name")]
    if not indicator_codes:
        logger.info("Reference family %d has no matching indicators", request.reference_family_id)
        return []

    rows = await _fetch(executor, queries.similar_families(request, indicator_codes))
    return [
        {
            "familyId": row.get("family_id"),
            "familyCode": row.get("family_code"),
            "familyName": row.get("family_name"),
            "similarityScore": _int(row.get("similarity_score")),
            "commonIndicatorCodes": row.get("common_indicator_codes") or [],
        }
        for row in rows
    ]


async def track_mentor_family_progress(
    executor: SqlExecutor,
    request: TrackMentorFamilyProgressRequest,
) -> list[dict[str, Any]]:
    rows = await _fetch(executor, queries.track_mentor_family_progress(request))
    return [
        {
            "familyId": row.get("family_id"),
            "familyCode": row.get("family_code"),
            "familyName": row.get("family_name"),
            "indicatorCodeName": row.get("indicator_code_name"),
            "indicatorShortName": row.get("indicator_short_name"),
            "previousColor": row.get("previous_value"),
            "currentColor": row.get("current_value"),
            "achievementDate": _int(row.get("achievement_date")),
        }
        for row in rows
    ]


async def find_common_red_indicators(
    executor: SqlExecutor,
    request: FindCommonRedIndicatorsRequest,
) -> list[dict[str, Any]]:
    rows = await _fetch(executor, queries.find_common_red_indicators(request))
    return [
        {
            "indicatorCodeName": row.get("indicator_code_name"),
            "indicatorShortName": row.get("indicator_short_name"),
            "redFamilyCount": _int(row.get("red_family_count")),
            "redFamilyPercentage": round(_number(row.get("red_family_percentage")), 2),
        }
        for row in rows
    ]


async def discover_available_data(
    executor: SqlExecutor,
    request: DiscoverAvailableDataRequest,
) -> dict[str, Any]:
    if request.discovery_type == "countries" and request.country_code_filter:
        logger.warning("country_code_filter is ignored when discovering countries")

    rows = await _fetch(executor, queries.discover_available_data(request))
    if request.discovery_type == "countries":
        data = [{"country_code": row.get("country_code")} for row in rows]
    else:
        data = [
            {"indicator_code_name": row.get("code_name"), "dimension": row.get("dimension")}
            for row in rows
        ]
    return {
        "discovery_type": request.discovery_type,
        "country_filter_applied": request.country_code_filter or None,
        "count": len(data),
        "data": data,
    }


async def get_mentor_performance_summary(
    executor: SqlExecutor,
    request: MentorPerformanceSummaryRequest,
) -> list[dict[str, Any]]:
    rows = await _fetch(executor, queries.mentor_performance_summary(request))
    return [
        {
            "mentorUserId": row.get("mentor_user_id"),
            "mentorName": row.get("mentor_name"),
            "surveyCount": _int(row.get("survey_count")),
            "averageTotalTimeMs": _number(row.get("average_total_time_ms")),
        }
        for row in rows
    ]


@dataclass(frozen=True)
class PspTool:
    """One PSP endpoint: its request model and runner."""

    request_model: type[BaseModel]
    run: Callable[[SqlExecutor, Any], Awaitable[Any]]


PSP_TOOLS: dict[str, PspTool] = {
    "track-indicator-improvement": PspTool(
        TrackIndicatorImprovementRequest, track_indicator_improvement
    ),
    "compare-indicator-status-by-country": PspTool(
        CompareIndicatorStatusByCountryRequest, compare_indicator_status_by_country
    ),
    "find-resistant-indicators": PspTool(FindResistantIndicatorsRequest, find_resistant_indicators),
    "find-similar-families-by-needs": PspTool(
        FindSimilarFamiliesByNeedsRequest, find_similar_families_by_needs
    ),
    "track-mentor-family-progress": PspTool(
        TrackMentorFamilyProgressRequest, track_mentor_family_progress
    ),
    "find-common-red-indicators": PspTool(
        FindCommonRedIndicatorsRequest, find_common_red_indicators
    ),
    "discover-available-data": PspTool(DiscoverAvailableDataRequest, discover_available_data),
    "get-mentor-performance-summary": PspTool(
        MentorPerformanceSummaryRequest, get_mentor_performance_summary
    ),
}
