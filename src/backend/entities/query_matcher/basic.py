"""Rule-based fallback matcher.

Scores a role's templates by lexical overlap with their example phrasings,
then by overlap with their descriptions, and finally defaults to the
role's first template. Confidence tiers (60 / 40 / 20) tell callers how
much the match should be trusted. The matcher is deterministic and holds
no per-request state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from entities.query_matcher.base import default_params, significant_words, words
from entities.template_registry import TemplateRegistry
from models import MatchResult, QueryTemplate, RequestContext

logger = logging.getLogger(__name__)

EXAMPLE_CONFIDENCE = 60.0
DESCRIPTION_CONFIDENCE = 40.0
FALLBACK_CONFIDENCE = 20.0

MIN_EXAMPLE_OVERLAP = 3
MIN_DESCRIPTION_KEYWORDS = 2
EXAMPLE_WORD_MIN_LENGTH = 4
DESCRIPTION_WORD_MIN_LENGTH = 5


class BasicMatcher:
    """Keyword-overlap matcher over a ``TemplateRegistry``.

    Args:
        registry: Template catalogue to match against.
        clock: Returns "today" for the date-range defaults.
    """

    name = "basic"

    def __init__(
        self,
        registry: TemplateRegistry,
        *,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._registry = registry
        self._clock = clock

    async def try_match(
        self,
        query: str,
        role: str,
        context: RequestContext,
    ) -> MatchResult | None:
        return self.match(query, role, context)

    def match(
        self,
        query: str,
        role: str,
        context: RequestContext | None = None,
    ) -> MatchResult | None:
        """Classify ``query`` for ``role`` without any I/O.

        Returns:
            A ``MatchResult``, or ``None`` when the role has no templates.
        """
        templates = self._registry.templates_for(role)
        if not templates:
            logger.info("No templates defined for role '%s'", role)
            return None

        context = context or RequestContext()

        query_type = self._match_examples(query, templates)
        if query_type is not None:
            return self._result(
                query_type,
                query,
                context,
                EXAMPLE_CONFIDENCE,
                "keyword overlap with example queries",
            )

        query_type = self._match_description(query, templates)
        if query_type is not None:
            return self._result(
                query_type,
                query,
                context,
                DESCRIPTION_CONFIDENCE,
                "matched based on description keywords",
            )

        first_query_type = templates[0][0]
        return self._result(
            first_query_type,
            query,
            context,
            FALLBACK_CONFIDENCE,
            "no clear match found, using default function",
        )

    @staticmethod
    def _match_examples(
        query: str,
        templates: list[tuple[str, QueryTemplate]],
    ) -> str | None:
        """Pick the template whose example shares the most significant words.

        Candidates need at least ``MIN_EXAMPLE_OVERLAP`` common words. Among
        candidates the highest Jaccard similarity wins, then the larger
        overlap, then declaration order, so an exact example phrase always
        selects its own template.
        """
        query_words = significant_words(query, EXAMPLE_WORD_MIN_LENGTH)
        if len(query_words) < MIN_EXAMPLE_OVERLAP:
            return None

        best_type: str | None = None
        best_key: tuple[float, int] = (0.0, 0)
        for query_type, template in templates:
            for example in template.examples:
                example_words = significant_words(example, EXAMPLE_WORD_MIN_LENGTH)
                common = query_words & example_words
                if len(common) < MIN_EXAMPLE_OVERLAP:
                    continue
                key = (len(common) / len(query_words | example_words), len(common))
                if best_type is None or key > best_key:
                    best_type, best_key = query_type, key

        return best_type

    @staticmethod
    def _match_description(
        query: str,
        templates: list[tuple[str, QueryTemplate]],
    ) -> str | None:
        """First template with enough description keywords inside the query."""
        query_lower = (query or "").lower()
        for query_type, template in templates:
            keywords = [
                word
                for word in words(template.description)
                if len(word) >= DESCRIPTION_WORD_MIN_LENGTH
            ]
            hits = sum(1 for keyword in keywords if keyword in query_lower)
            if hits >= MIN_DESCRIPTION_KEYWORDS:
                return query_type
        return None

    def _result(
        self,
        query_type: str,
        query: str,
        context: RequestContext,
        confidence: float,
        reasoning: str,
    ) -> MatchResult:
        logger.info(
            "Basic match: '%s' (confidence=%.0f, reasoning=%s)",
            query_type,
            confidence,
            reasoning,
        )
        return MatchResult(
            query_type=query_type,
            params=default_params(query, context, self._clock()),
            confidence=confidence,
            reasoning=reasoning,
            matcher=self.name,
        )
