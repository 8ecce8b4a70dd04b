"""Shared utilities for matchers, the dispatcher and the PSP tools."""

from .clause_builder import ClauseBuilder, ParameterizedQuery, function_call
from .errors import (
    ClassificationFailure,
    ExecutionFailure,
    MatcherError,
    QueryServiceError,
    UnknownTemplate,
)
from .sql_client import PostgresClient

__all__ = [
    "ClassificationFailure",
    "ClauseBuilder",
    "ExecutionFailure",
    "MatcherError",
    "ParameterizedQuery",
    "PostgresClient",
    "QueryServiceError",
    "UnknownTemplate",
    "function_call",
]
