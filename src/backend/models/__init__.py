"""
Shared models for entities.

These models are used across the matchers, the dispatcher, the PSP tools
and the API routers. All models are re-exported here.
"""

from .execution import QueryMeta, QueryRequest, QueryResponse, QueryResult
from .extraction import DateRange, FamilyReference, MatchResult, RequestContext
from .psp import (
    CompareIndicatorStatusByCountryRequest,
    DiscoverAvailableDataRequest,
    FindCommonRedIndicatorsRequest,
    FindResistantIndicatorsRequest,
    FindSimilarFamiliesByNeedsRequest,
    MentorPerformanceSummaryRequest,
    TrackIndicatorImprovementRequest,
    TrackMentorFamilyProgressRequest,
)
from .schema import QueryTemplate

__all__ = [
    # Schema (template catalogue)
    "QueryTemplate",
    # Extraction (matching results and extracted values)
    "DateRange",
    "FamilyReference",
    "MatchResult",
    "RequestContext",
    # Execution (query endpoint)
    "QueryMeta",
    "QueryRequest",
    "QueryResponse",
    "QueryResult",
    # PSP tool requests
    "CompareIndicatorStatusByCountryRequest",
    "DiscoverAvailableDataRequest",
    "FindCommonRedIndicatorsRequest",
    "FindResistantIndicatorsRequest",
    "FindSimilarFamiliesByNeedsRequest",
    "MentorPerformanceSummaryRequest",
    "TrackIndicatorImprovementRequest",
    "TrackMentorFamilyProgressRequest",
]
