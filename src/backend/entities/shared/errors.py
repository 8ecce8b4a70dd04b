"""Error taxonomy for query matching and execution.

Each error carries a user-facing message and the HTTP status the API
layer should answer with. Internal detail stays on ``__cause__`` and in
the logs.
"""


class QueryServiceError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Failed to execute query"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ClassificationFailure(QueryServiceError):
    """No matcher produced a usable result for the question."""

    status_code = 400
    default_message = "Could not determine query type from your question."


class UnknownTemplate(QueryServiceError):
    """A match named a query type the role's registry does not define."""

    status_code = 400
    default_message = "Query template not found"


class ExecutionFailure(QueryServiceError):
    """The bound query failed at the database layer."""

    status_code = 500
    default_message = "Failed to execute query"


class MatcherError(Exception):
    """Transient matcher failure (network, malformed model output).

    Never shown to callers: the dispatcher moves on to the next matcher.
    """
