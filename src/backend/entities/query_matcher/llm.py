"""LLM-backed query matcher.

Asks a ChatAgent to pick a query type for the question from the role's
templates and to extract parameter values. The model output is untrusted:
it is parsed leniently, validated against ``MatchResult``, and the chosen
query type is checked against the registry before it is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from agent_framework import ChatAgent
from entities.parameter_extractor import extract_date_range
from entities.query_matcher.base import with_defaults
from entities.shared.errors import MatcherError
from entities.shared.llm_response import parse_llm_json
from entities.template_registry import TemplateRegistry
from models import MatchResult, QueryTemplate, RequestContext

logger = logging.getLogger(__name__)


def build_matching_prompt(
    query: str,
    role: str,
    templates: list[tuple[str, QueryTemplate]],
) -> str:
    """Build the classification prompt for one question.

    Args:
        query: The user's question.
        role: Requesting user role.
        templates: ``(query_type, template)`` pairs available to the role.

    Returns:
        Prompt text listing every candidate function.
    """
    sections = []
    for query_type, template in templates:
        examples = "\n".join(f'- "{example}"' for example in template.examples)
        sections.append(
            f"Function: {template.function}\n"
            f"Description: {template.description}\n"
            f"Parameters: {', '.join(template.params)}\n"
            f"Query Type: {query_type}\n"
            f"Example Queries:\n{examples}"
        )

    functions = "\n---\n".join(sections)
    return f"""Analyze a natural language query and match it to the most appropriate database function based on the user's role and intent.

USER TYPE: {role}

AVAILABLE FUNCTIONS:
{functions}

USER QUERY: "{query}"

Determine:
1. Which function best matches the user's intent
2. What parameter values should be extracted from the query (dates as YYYY-MM-DD)
3. Your confidence level (0-100) in this match
4. Your reasoning for this selection

Respond with a JSON object with the keys "queryType", "params", "confidence" and "reasoning"."""


def _response_text(response: Any) -> str:  # noqa: ANN401
    """Join the text contents of every message in an agent response."""
    texts = [
        content.text
        for msg in getattr(response, "messages", None) or []
        for content in getattr(msg, "contents", None) or []
        if isinstance(getattr(content, "text", None), str) and content.text
    ]
    if texts:
        return "\n".join(texts)
    text_value = getattr(response, "text", None)
    return text_value if isinstance(text_value, str) else ""


class LLMMatcher:
    """Query matcher backed by a ChatAgent.

    Args:
        agent: Agent configured with the query matcher instructions.
        registry: Template catalogue the model chooses from.
        clock: Returns "today" for the date-range fill.
    """

    name = "llm"

    def __init__(
        self,
        agent: ChatAgent,
        registry: TemplateRegistry,
        *,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._agent = agent
        self._registry = registry
        self._clock = clock

    async def try_match(
        self,
        query: str,
        role: str,
        context: RequestContext,
    ) -> MatchResult | None:
        """Classify ``query`` with the model.

        Returns:
            A validated ``MatchResult``, or ``None`` when the role has no
            templates to choose from.

        Raises:
            MatcherError: If the model call fails or its answer is unusable.
        """
        templates = self._registry.templates_for(role)
        if not templates:
            return None

        prompt = build_matching_prompt(query, role, templates)
        logger.debug("Query matcher prompt:\n%s", prompt)

        try:
            thread = self._agent.get_new_thread()
            response = await self._agent.run(prompt, thread=thread)
        except Exception as exc:
            logger.warning("Query matcher agent call failed: %s", exc)
            raise MatcherError("LLM call failed") from exc

        response_text = _response_text(response)
        logger.info("LLM response: %s", response_text[:500] if response_text else "(empty)")

        try:
            result = MatchResult.model_validate(parse_llm_json(response_text))
        except ValueError as exc:
            raise MatcherError("LLM response is not a valid match") from exc

        template = self._registry.lookup(role, result.query_type)
        if template is None:
            logger.warning("LLM chose unknown query type '%s' for role '%s'", result.query_type, role)
            raise MatcherError(f"Query type {result.query_type} not found for user type {role}")

        params = with_defaults(result.params, context)
        if template.declares("start_date", "end_date") and not (
            params.get("start_date") and params.get("end_date")
        ):
            dates = extract_date_range(query, today=self._clock())
            if not params.get("start_date"):
                params["start_date"] = dates.start_date
            if not params.get("end_date"):
                params["end_date"] = dates.end_date

        return result.model_copy(update={"params": params, "matcher": self.name})
