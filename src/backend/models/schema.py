"""
Query template models.

These models describe the static catalogue of parameterized analytics
functions that a natural-language question can be routed to.
"""

from pydantic import BaseModel, ConfigDict, Field


class QueryTemplate(BaseModel):
    """
    One invocable analytical query.

    ``params`` order is significant: it is the positional argument order of
    the backing database function.
    """

    model_config = ConfigDict(frozen=True)

    function: str = Field(description="Schema-qualified database function name")
    params: tuple[str, ...] = Field(
        default=(), description="Parameter names in positional binding order"
    )
    description: str = Field(default="", description="Human-readable summary")
    examples: tuple[str, ...] = Field(
        default=(), description="Representative natural-language phrasings"
    )

    def declares(self, *names: str) -> bool:
        """Return True if any of ``names`` is a parameter of this template."""
        return any(name in self.params for name in names)
