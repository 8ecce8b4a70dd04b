"""Regex intent rules per role.

Each rule pairs an intent pattern with a builder that fills the
parameters the matched intent needs. Rules are tried in order and the
first hit wins; a question no rule recognises yields ``None``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from entities.parameter_extractor import (
    extract_country_filter,
    extract_date_range,
    extract_dimensions,
    extract_family_reference,
    extract_program_type,
    extract_status_change,
    extract_status_filter,
)
from entities.query_matcher.base import with_defaults
from entities.template_registry import (
    ROLE_MENTOR,
    ROLE_ORGANIZATION_HEAD,
    ROLE_PSP_HEAD,
    TemplateRegistry,
)
from models import MatchResult, RequestContext

logger = logging.getLogger(__name__)

PATTERN_CONFIDENCE = 50.0

ParamBuilder = Callable[[str, date], dict[str, Any]]


@dataclass(frozen=True)
class IntentRule:
    name: str
    query_type: str
    pattern: re.Pattern[str]
    build: ParamBuilder


def _dates(text: str, today: date) -> dict[str, Any]:
    return extract_date_range(text, today=today).as_params()


def _family(text: str) -> dict[str, Any]:
    return {"family_id": extract_family_reference(text).family_id}


def _rule(name: str, query_type: str, pattern: str, build: ParamBuilder) -> IntentRule:
    return IntentRule(name, query_type, re.compile(pattern, re.IGNORECASE), build)


def _improvement_params(text: str, today: date) -> dict[str, Any]:
    return {
        **_dates(text, today),
        "dimensions": extract_dimensions(text),
        "country_filter": extract_country_filter(text),
    }


def _country_params(text: str, today: date) -> dict[str, Any]:
    return {
        **_dates(text, today),
        "dimensions": extract_dimensions(text),
        "status_filter": extract_status_filter(text),
    }


def _progress_params(text: str, today: date) -> dict[str, Any]:
    from_status, to_status = extract_status_change(text)
    return {
        **_dates(text, today),
        "from_status": from_status,
        "to_status": to_status,
        "track_progress": True,
    }


RULES: dict[str, tuple[IntentRule, ...]] = {
    ROLE_PSP_HEAD: (
        _rule(
            "improvement",
            "global_red_distribution",
            r"improv(ed|ement)|from red to (yellow|green)|chang(ed|e) (color|status)",
            _improvement_params,
        ),
        _rule(
            "country comparison",
            "country_comparison",
            r"compar(e|ison) (of |between )?countries|which countries|across countries",
            _country_params,
        ),
        _rule(
            "resistant indicators",
            "global_red_distribution",
            r"resistant|stay (red|yellow|green)|not improv(ed|ing)|effectiveness",
            lambda text, today: {**_dates(text, today), "filter_type": "resistant"},
        ),
        _rule(
            "dimension analysis",
            "country_comparison",
            r"dimension (analysis|comparison)|compare .* dimensions",
            lambda text, today: {
                **_dates(text, today),
                "dimensions": extract_dimensions(text),
                "analysis_type": "dimension",
            },
        ),
    ),
    ROLE_ORGANIZATION_HEAD: (
        _rule(
            "mentor performance",
            "mentor_performance",
            r"mentors? (performance|completed|surveys|efficiency|time)",
            _dates,
        ),
        _rule(
            "intervention effectiveness",
            "org_improvement_trends",
            r"intervention|program effective|improv(ed|ing) (after|following)",
            lambda text, today: {
                **_dates(text, today),
                "program_type": extract_program_type(text),
            },
        ),
        _rule(
            "resource allocation",
            "resource_allocation",
            r"resource (allocation|planning)|focus (our )?resources"
            r"|where (should|to) (we )?(focus|allocate)",
            lambda text, today: {
                **_dates(text, today),
                "dimensions": extract_dimensions(text),
            },
        ),
        _rule(
            "benchmarking",
            "org_improvement_trends",
            r"benchmark|compar(e|ison) to others|how does our organization compare",
            lambda text, today: {
                **_dates(text, today),
                "dimensions": extract_dimensions(text),
                "analysis_type": "benchmarking",
            },
        ),
    ),
    ROLE_MENTOR: (
        _rule(
            "similar needs",
            "similar_families",
            r"similar (needs|families|indicators|problems)",
            lambda text, today: {**_family(text), "dimensions": extract_dimensions(text)},
        ),
        _rule(
            "progress",
            "family_red_indicators",
            r"progress|improv(ed|ing)|families who have",
            _progress_params,
        ),
        _rule(
            "intervention recommendation",
            "intervention_recommender",
            r"intervention|recommend|what (has|have) worked|best for families",
            lambda text, today: {**_family(text), "dimensions": extract_dimensions(text)},
        ),
        _rule(
            "survey time",
            "family_red_indicators",
            r"survey time|longest time|time to complete|survey efficiency",
            lambda text, today: {"analysis_type": "survey_time"},
        ),
        _rule(
            "red indicators",
            "family_red_indicators",
            r"red indicators|indicators (that are|in) red",
            lambda text, today: _family(text),
        ),
    ),
}


class PatternMatcher:
    """Matches questions against ``RULES`` for the requesting role.

    Rules naming a query type the registry does not define for the role
    are skipped, so a trimmed catalogue never yields an unknown template.
    """

    name = "pattern"

    def __init__(
        self,
        registry: TemplateRegistry,
        rules: dict[str, tuple[IntentRule, ...]] | None = None,
        *,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._registry = registry
        self._rules = RULES if rules is None else rules
        self._clock = clock

    async def try_match(
        self,
        query: str,
        role: str,
        context: RequestContext,
    ) -> MatchResult | None:
        text = query or ""
        for rule in self._rules.get(role, ()):
            if not rule.pattern.search(text):
                continue
            if self._registry.lookup(role, rule.query_type) is None:
                logger.debug("Rule '%s' targets unknown type '%s'", rule.name, rule.query_type)
                continue
            logger.info("Pattern match: rule '%s' -> '%s'", rule.name, rule.query_type)
            return MatchResult(
                query_type=rule.query_type,
                params=with_defaults(rule.build(text, self._clock()), context),
                confidence=PATTERN_CONFIDENCE,
                reasoning=f"matched intent rule '{rule.name}'",
                matcher=self.name,
            )
        return None
