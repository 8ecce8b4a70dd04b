"""Best-effort extraction of a JSON object from model output.

Model responses are untrusted text: the object may arrive bare, inside a
markdown code fence, or surrounded by commentary. Extraction is tolerant
of the wrapping but fails closed on anything that is not a JSON object.
"""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

_FENCE = "```"


def find_first_object_span(text: str) -> str | None:
    """Return the first balanced top-level ``{...}`` span in ``text``.

    Braces inside JSON string literals (including escaped quotes) are
    ignored while counting depth.

    Args:
        text: Arbitrary text that may contain a JSON object.

    Returns:
        The substring from the first ``{`` to its matching ``}``, or
        ``None`` when no balanced span exists.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next opening brace.
        start = text.find("{", start + 1)
    return None


def _fenced_block(text: str) -> str | None:
    """Return the body of the first ```json (or bare ```) fence."""
    marker = text.find(_FENCE + "json")
    offset = len(_FENCE) + 4
    if marker == -1:
        marker = text.find(_FENCE)
        offset = len(_FENCE)
    if marker == -1:
        return None
    end = text.find(_FENCE, marker + offset)
    if end == -1:
        return None
    return text[marker + offset : end].strip()


def parse_llm_json(response_text: str) -> dict[str, Any]:
    """Parse the first JSON object from an LLM response.

    Attempts, in order: strict parse of the whole response, parse of a
    markdown code fence, then the first balanced ``{...}`` span.

    Args:
        response_text: The raw text response from the LLM.

    Returns:
        The parsed JSON object.

    Raises:
        ValueError: If no JSON object can be recovered.
    """
    text = (response_text or "").strip()
    if not text:
        raise ValueError("Empty LLM response")

    candidates: list[str] = [text]
    fenced = _fenced_block(text)
    if fenced:
        candidates.append(fenced)
    span = find_first_object_span(text)
    if span:
        candidates.append(span)

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.warning("Could not extract JSON from LLM response: %s", text[:200])
    raise ValueError(f"Failed to parse LLM response: {text[:200]}")
