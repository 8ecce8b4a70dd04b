"""Parameterized SQL for the PSP analytics tools.

Every builder is pure: it takes a validated request model and returns a
``ParameterizedQuery``. Optional filters are added through
``ClauseBuilder`` so placeholder numbering always matches the bound
values. Identifiers (sort columns, improvement levels) come only from
fixed lookup tables keyed by validated enum values.
"""

from __future__ import annotations

from entities.shared.clause_builder import ClauseBuilder, ParameterizedQuery
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

RED = 1
YELLOW = 2
GREEN = 3


def track_indicator_improvement(request: TrackIndicatorImprovementRequest) -> ParameterizedQuery:
    """Families whose indicator moved from ``start_color`` to ``target_color``."""
    conditions = ClauseBuilder("ss.code_name = ?", request.indicator_code_name)
    conditions.append(
        """
          AND EXISTS (
            SELECT 1 FROM stoplight_analytics.snapshot_stoplight ss2
            WHERE ss2.snapshot_id = s.id
              AND ss2.code_name = ?
          )""",
        request.indicator_code_name,
    )
    conditions.append_if(request.country_filter, " AND f.country = ?", request.country_filter)
    conditions.append_if(
        request.organization_id_filter,
        " AND s.organization_id = ?",
        request.organization_id_filter,
    )

    query = ClauseBuilder(
        """
        WITH previous_snapshots AS (
          SELECT s.family_id, s.snapshot_date, ss.value
          FROM stoplight_analytics.snapshot s
          JOIN stoplight_analytics.snapshot_stoplight ss ON s.id = ss.snapshot_id
          JOIN stoplight_analytics.family f ON s.family_id = f.family_id
          WHERE """
    )
    query.extend(conditions)
    query.append(
        """
            AND ss.value = ?
            AND NOT s.is_last
        ),
        current_snapshots AS (
          SELECT s.family_id, s.snapshot_date, ss.value
          FROM stoplight_analytics.snapshot s
          JOIN stoplight_analytics.snapshot_stoplight ss ON s.id = ss.snapshot_id
          JOIN stoplight_analytics.family f ON s.family_id = f.family_id
          WHERE """,
        request.start_color,
    )
    query.extend(conditions)
    query.append(
        """
            AND s.is_last = true
        ),
        target_families AS (
          SELECT
            p.family_id,
            c.snapshot_date - p.snapshot_date AS date_diff
          FROM previous_snapshots p
          JOIN current_snapshots c ON p.family_id = c.family_id
          WHERE c.value = ?
            AND c.snapshot_date > p.snapshot_date
            AND c.snapshot_date <= p.snapshot_date + make_interval(months => ?)
        )
        SELECT
          COUNT(DISTINCT family_id) AS improved_count,
          MIN(date_diff) AS min_days,
          MAX(date_diff) AS max_days,
          AVG(date_diff) AS avg_days
        FROM target_families
        """,
        request.target_color,
        request.time_period_months,
    )
    return query.build()


def compare_indicator_status_by_country(
    request: CompareIndicatorStatusByCountryRequest,
) -> ParameterizedQuery:
    """Per-country share (or count) of a dimension's indicators in one color."""
    query = ClauseBuilder(
        """
        WITH country_indicator_stats AS (
          SELECT
            def.country_code AS country,
            COUNT(sl.id) AS total_indicators_in_dimension,
            COUNT(CASE WHEN sl.value = ? THEN 1 END) AS matching_color_indicators
          FROM data_collect.snapshot s
          JOIN data_collect.survey_definition def ON s.survey_definition_id = def.id
          JOIN data_collect.snapshot_stoplight sl ON s.id = sl.snapshot_id
          JOIN data_collect.survey_stoplight ss ON (
            ss.survey_definition_id = s.survey_definition_id AND sl.code_name = ss.code_name
          )
          WHERE s.is_last = true
            AND ss.survey_dimension_id = ?
          GROUP BY def.country_code
          HAVING COUNT(sl.id) > 0
        )""",
        request.target_color,
        request.indicator_dimension_id,
    )
    if request.metric == "percentage":
        query.append(
            """
        SELECT
          country,
          CASE
            WHEN total_indicators_in_dimension > 0
            THEN matching_color_indicators::decimal / total_indicators_in_dimension * 100
            ELSE 0
          END AS value
        FROM country_indicator_stats
        ORDER BY value DESC"""
        )
    else:
        query.append(
            """
        SELECT country, matching_color_indicators AS value
        FROM country_indicator_stats
        ORDER BY value DESC"""
        )
    return query.build()


def find_resistant_indicators(request: FindResistantIndicatorsRequest) -> ParameterizedQuery:
    """Family indicators that kept the resistant color across follow-ups.

    A family needs the color in more than ``min_follow_ups`` snapshots: the
    baseline plus at least that many follow-ups.
    """
    query = ClauseBuilder(
        """
        WITH indicator_progression AS (
          SELECT
            s.family_id,
            f.name AS family_name,
            sl.code_name AS indicator_code_name,
            ss.short_name AS indicator_short_name,
            s.snapshot_date
          FROM data_collect.snapshot s
          JOIN data_collect.snapshot_stoplight sl ON s.id = sl.snapshot_id
          JOIN data_collect.survey_stoplight ss ON (
            ss.survey_definition_id = s.survey_definition_id AND sl.code_name = ss.code_name
          )
          JOIN ps_families.family f ON s.family_id = f.family_id
          WHERE sl.value = ?
            AND f.is_active = true""",
        request.resistant_color,
    )
    query.append_if(
        request.organization_id_filter,
        " AND s.organization_id = ?",
        request.organization_id_filter,
    )
    query.append(
        """
        )
        SELECT
          family_id,
          family_name,
          indicator_code_name,
          indicator_short_name,
          COUNT(*) AS times_resistant_color,
          MIN(to_char(to_timestamp(snapshot_date), 'YYYY-MM-DD')) AS first_resistant_date,
          MAX(to_char(to_timestamp(snapshot_date), 'YYYY-MM-DD')) AS last_resistant_date
        FROM indicator_progression
        GROUP BY family_id, family_name, indicator_code_name, indicator_short_name
        HAVING COUNT(*) >= ?
        ORDER BY times_resistant_color DESC, family_id, indicator_code_name""",
        request.min_follow_ups + 1,
    )
    return query.build()


def reference_family_indicators(request: FindSimilarFamiliesByNeedsRequest) -> ParameterizedQuery:
    """Indicators of the reference family's latest snapshot in the target color."""
    query = ClauseBuilder(
        """
        SELECT st.code_name
        FROM data_collect.snapshot_stoplight st
        JOIN data_collect.snapshot s ON st.snapshot_id = s.id
        WHERE s.family_id = ?
          AND s.is_last = true
          AND st.value = ?""",
        request.reference_family_id,
        request.target_similarity_color,
    )
    query.append_if(
        request.indicator_code_names,
        " AND st.code_name = ANY(?::text[])",
        request.indicator_code_names,
    )
    return query.build()


def similar_families(
    request: FindSimilarFamiliesByNeedsRequest,
    indicator_codes: list[str],
) -> ParameterizedQuery:
    """Mentor's families sharing ``indicator_codes`` in the target color."""
    query = ClauseBuilder(
        """
        SELECT
          f.family_id,
          f.code AS family_code,
          f.name AS family_name,
          COUNT(st.code_name) AS similarity_score,
          array_agg(st.code_name) AS common_indicator_codes
        FROM data_collect.snapshot_stoplight st
        JOIN data_collect.snapshot s ON st.snapshot_id = s.id
        JOIN ps_families.family f ON s.family_id = f.family_id
        WHERE s.is_last = true
          AND s.survey_user_id = ?
          AND f.family_id != ?
          AND st.value = ?
          AND st.code_name = ANY(?::text[])""",
        request.requesting_mentor_user_id,
        request.reference_family_id,
        request.target_similarity_color,
        list(indicator_codes),
    )
    query.append_if(
        request.indicator_code_names,
        " AND st.code_name = ANY(?::text[])",
        request.indicator_code_names,
    )
    query.append(
        """
        GROUP BY f.family_id, f.code, f.name
        HAVING COUNT(st.code_name) > 0
        ORDER BY similarity_score DESC, f.family_id
        LIMIT ?""",
        request.limit,
    )
    return query.build()


_IMPROVEMENT_FILTERS: dict[str, str] = {
    "red_to_yellow": f" AND rs.previous_value = {RED} AND rs.current_value = {YELLOW}",
    "yellow_to_green": f" AND rs.previous_value = {YELLOW} AND rs.current_value = {GREEN}",
    "red_to_green": f" AND rs.previous_value = {RED} AND rs.current_value = {GREEN}",
    "any": (
        f" AND ((rs.previous_value = {RED} AND rs.current_value IN ({YELLOW}, {GREEN}))"
        f" OR (rs.previous_value = {YELLOW} AND rs.current_value = {GREEN}))"
    ),
}


def track_mentor_family_progress(request: TrackMentorFamilyProgressRequest) -> ParameterizedQuery:
    """Color improvements achieved by a mentor's families within the period.

    The next-snapshot color and date are computed in the inner query; the
    period and improvement filters apply to them in the outer query since
    window results cannot be filtered in the same ``WHERE``.
    """
    query = ClauseBuilder(
        """
        WITH ranked_snapshots AS (
          SELECT
            s.family_id,
            sl.code_name AS indicator_code_name,
            ss.short_name AS indicator_short_name,
            sl.value AS previous_value,
            LEAD(sl.value) OVER w AS current_value,
            LEAD(s.snapshot_date) OVER w AS achievement_date
          FROM data_collect.snapshot s
          JOIN data_collect.snapshot_stoplight sl ON s.id = sl.snapshot_id
          JOIN data_collect.survey_stoplight ss ON (
            ss.survey_definition_id = s.survey_definition_id AND sl.code_name = ss.code_name
          )
          WHERE s.survey_user_id = ?
          WINDOW w AS (PARTITION BY s.family_id, sl.code_name ORDER BY s.snapshot_date)
        )
        SELECT DISTINCT
          rs.family_id,
          f.code AS family_code,
          f.name AS family_name,
          rs.indicator_code_name,
          rs.indicator_short_name,
          rs.previous_value,
          rs.current_value,
          rs.achievement_date
        FROM ranked_snapshots rs
        JOIN ps_families.family f ON rs.family_id = f.family_id
        WHERE rs.current_value IS NOT NULL
          AND rs.previous_value IN (1, 2)
          AND to_timestamp(rs.achievement_date) >= NOW() - make_interval(months => ?)""",
        request.requesting_mentor_user_id,
        request.time_period_months,
    )
    query.append(_IMPROVEMENT_FILTERS[request.min_improvement_level])
    query.append(" ORDER BY family_name, rs.indicator_code_name, rs.achievement_date")
    return query.build()


def find_common_red_indicators(request: FindCommonRedIndicatorsRequest) -> ParameterizedQuery:
    """Most common red indicators among an organization's latest snapshots."""
    query = ClauseBuilder(
        """
        WITH latest_snapshots_for_org AS (
          SELECT s.id AS snapshot_id, s.family_id, s.survey_definition_id
          FROM data_collect.snapshot s
          WHERE s.organization_id = ?
            AND s.is_last = true""",
        request.requesting_organization_id,
    )
    query.append_if(request.hub_filter_id, " AND s.application_id = ?", request.hub_filter_id)
    query.append_if(request.project_filter_id, " AND s.project_id = ?", request.project_filter_id)
    query.append(
        f"""
        ),
        total_families_in_scope AS (
          SELECT COUNT(DISTINCT ls.family_id) AS count
          FROM latest_snapshots_for_org ls
        ),
        red_indicator_counts AS (
          SELECT st.code_name, COUNT(DISTINCT ls.family_id) AS red_family_count
          FROM data_collect.snapshot_stoplight st
          JOIN latest_snapshots_for_org ls ON st.snapshot_id = ls.snapshot_id
          WHERE st.value = {RED}
          GROUP BY st.code_name
        )
        SELECT
          ric.code_name AS indicator_code_name,
          ss.short_name AS indicator_short_name,
          ric.red_family_count,
          CASE
            WHEN (SELECT count FROM total_families_in_scope) > 0
            THEN ric.red_family_count::decimal * 100 / (SELECT count FROM total_families_in_scope)
            ELSE 0
          END AS red_family_percentage
        FROM red_indicator_counts ric
        LEFT JOIN data_collect.survey_stoplight ss ON ric.code_name = ss.code_name
          AND ss.survey_definition_id = (
            SELECT survey_definition_id FROM latest_snapshots_for_org LIMIT 1
          )
        ORDER BY ric.red_family_count DESC
        LIMIT ?""",
        request.limit,
    )
    return query.build()


def discover_available_data(request: DiscoverAvailableDataRequest) -> ParameterizedQuery:
    """Distinct countries, or distinct indicators (optionally for one country)."""
    if request.discovery_type == "countries":
        return ClauseBuilder(
            """
            SELECT DISTINCT country AS country_code
            FROM ps_families.family
            WHERE country IS NOT NULL
            ORDER BY country_code"""
        ).build()

    if request.country_code_filter:
        return ClauseBuilder(
            """
            SELECT DISTINCT sst.code_name, sst.dimension
            FROM data_collect.survey_stoplight sst
            JOIN data_collect.snapshot sn ON sst.survey_definition_id = sn.survey_definition_id
            JOIN ps_families.family f ON sn.family_id = f.family_id
            WHERE f.country = ?
            ORDER BY sst.code_name""",
            request.country_code_filter,
        ).build()

    return ClauseBuilder(
        """
        SELECT DISTINCT code_name, dimension
        FROM data_collect.survey_stoplight
        WHERE code_name IS NOT NULL AND dimension IS NOT NULL
        ORDER BY code_name"""
    ).build()


_MENTOR_SORT_COLUMNS: dict[str, str] = {
    "surveyCount": "survey_count",
    "averageTotalTimeMs": "average_total_time_ms",
}


def mentor_performance_summary(request: MentorPerformanceSummaryRequest) -> ParameterizedQuery:
    """Survey count and average survey duration per mentor of an organization."""
    sort_column = _MENTOR_SORT_COLUMNS[request.sort_by]
    direction = "ASC" if request.sort_order == "asc" else "DESC"
    return ClauseBuilder(
        f"""
        SELECT
          s.survey_user_id AS mentor_user_id,
          u.username AS mentor_name,
          COUNT(*) AS survey_count,
          AVG(COALESCE(s.stoplight_time, 0) + COALESCE(s.economic_time, 0)) AS average_total_time_ms
        FROM data_collect.snapshot s
        LEFT JOIN security.users u ON u.id = s.survey_user_id
        WHERE s.organization_id = ?
          AND to_timestamp(s.snapshot_date) >= NOW() - make_interval(months => ?)
        GROUP BY s.survey_user_id, u.username
        ORDER BY {sort_column} {direction}, mentor_user_id""",
        request.requesting_organization_id,
        request.time_period_months,
    ).build()
