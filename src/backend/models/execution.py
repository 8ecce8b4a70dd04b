"""
Query execution models.

Request and response shapes for the natural-language query endpoint,
plus the dispatcher's internal result.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """Body of ``POST /api/query``."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1, description="Natural-language question")
    user_type: str = Field(alias="userType", min_length=1, description="Requesting role")
    organization_id: int = Field(default=1, alias="organizationId")
    user_id: int = Field(default=1, alias="userId")


class QueryMeta(BaseModel):
    """Metadata describing how a question was answered."""

    model_config = ConfigDict(populate_by_name=True)

    query_type: str = Field(alias="queryType")
    description: str = ""
    param_values: list[Any] = Field(default_factory=list, alias="paramValues")
    confidence: float = 0.0
    reasoning: str = ""


class QueryResponse(BaseModel):
    """Successful response of ``POST /api/query``."""

    data: list[dict[str, Any]] = Field(default_factory=list)
    meta: QueryMeta


class QueryResult(BaseModel):
    """Rows returned by the dispatcher together with match metadata."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    query_type: str
    function: str = ""
    description: str = ""
    param_values: list[Any] = Field(default_factory=list)
    confidence: float = 0.0
    reasoning: str = ""
    matcher: str = ""

    def to_response(self) -> QueryResponse:
        """Shape this result as the public response body."""
        return QueryResponse(
            data=self.rows,
            meta=QueryMeta(
                query_type=self.query_type,
                description=self.description,
                param_values=self.param_values,
                confidence=self.confidence,
                reasoning=self.reasoning,
            ),
        )
