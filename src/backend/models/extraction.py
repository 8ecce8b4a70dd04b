"""
Matching and parameter extraction models.

These models carry the result of classifying a question into a query
type, together with the transient values pulled out of the question text.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_CONFIDENCE = 0.0
MAX_CONFIDENCE = 100.0


@dataclass(frozen=True)
class RequestContext:
    """Caller identity used to fill role-scoped default parameters.

    Usually derived from the authenticated session; the HTTP layer falls
    back to ``1`` for both ids when the caller omits them.
    """

    organization_id: int = 1
    user_id: int = 1

    def default_params(self) -> dict[str, Any]:
        """Return the default parameter values this context supplies."""
        return {
            "organization_id": self.organization_id,
            "mentor_id": self.user_id,
        }


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range extracted from a question."""

    start_date: date
    end_date: date

    def as_params(self) -> dict[str, date]:
        return {"start_date": self.start_date, "end_date": self.end_date}


@dataclass(frozen=True)
class FamilyReference:
    """Family identifier extracted from a question.

    ``source`` is one of ``"id"``, ``"name"`` or ``"default"``.
    """

    family_id: int
    source: str = "default"
    name: str | None = None


class MatchResult(BaseModel):
    """
    Output of one matching attempt.

    Accepts the camelCase ``queryType`` key so an LLM response can be
    validated directly into this model.
    """

    model_config = ConfigDict(populate_by_name=True)

    query_type: str = Field(alias="queryType", min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.0, description="Trust score, 0-100")
    reasoning: str = Field(default="", description="Free-text explanation")
    matcher: str = Field(default="", description="Name of the matcher that produced this")

    @field_validator("params", mode="before")
    @classmethod
    def _none_params_to_empty(cls, value: Any) -> Any:  # noqa: ANN401
        return {} if value is None else value

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_reasoning_to_empty(cls, value: Any) -> Any:  # noqa: ANN401
        return "" if value is None else value

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:  # noqa: ANN401
        if value is None:
            return MIN_CONFIDENCE
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        try:
            score = float(value)
        except TypeError as exc:
            raise ValueError(f"confidence must be a number, got {value!r}") from exc
        if not math.isfinite(score):
            raise ValueError(f"confidence must be finite, got {value!r}")
        return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score))
