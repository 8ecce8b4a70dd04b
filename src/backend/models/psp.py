"""
PSP tool request models.

One model per static analytics endpoint. Bounds mirror the tool
definitions exposed to the chat agent (colors: 1=Red, 2=Yellow, 3=Green).
"""

from typing import Literal

from pydantic import BaseModel, Field

ColorCode = int


class TrackIndicatorImprovementRequest(BaseModel):
    """Families that moved an indicator from one color to another."""

    indicator_code_name: str = Field(
        min_length=1, description='Code name of the indicator to track (e.g., "income")'
    )
    start_color: ColorCode = Field(ge=1, le=3, description="Starting color code")
    target_color: ColorCode = Field(ge=1, le=3, description="Target color code")
    time_period_months: int = Field(gt=0, description="Period in months to analyze")
    country_filter: str | None = Field(default=None, description="ISO country code")
    organization_id_filter: int | None = Field(default=None, gt=0)


class CompareIndicatorStatusByCountryRequest(BaseModel):
    """Share or count of indicators of one color in a dimension, per country."""

    indicator_dimension_id: int = Field(gt=0, description="Dimension id (e.g., 1 for Health)")
    target_color: ColorCode = Field(ge=1, le=3)
    metric: Literal["percentage", "count"] = "percentage"


class FindResistantIndicatorsRequest(BaseModel):
    """Indicators that stay red (or yellow) across follow-up surveys."""

    resistant_color: Literal[1, 2] = Field(default=1, description="1=Red, 2=Yellow")
    min_follow_ups: int = Field(default=1, gt=0)
    organization_id_filter: int | None = Field(default=None, gt=0)


class FindSimilarFamiliesByNeedsRequest(BaseModel):
    """Families of a mentor sharing a reference family's indicator colors."""

    requesting_mentor_user_id: int = Field(gt=0)
    reference_family_id: int = Field(gt=0)
    indicator_code_names: list[str] | None = Field(
        default=None, description="Restrict the similarity search to these indicators"
    )
    target_similarity_color: ColorCode = Field(default=1, ge=1, le=3)
    limit: int = Field(default=5, gt=0)


class TrackMentorFamilyProgressRequest(BaseModel):
    """Indicator improvements achieved by a mentor's families."""

    requesting_mentor_user_id: int = Field(gt=0)
    time_period_months: int = Field(default=3, gt=0)
    min_improvement_level: Literal["any", "red_to_yellow", "yellow_to_green", "red_to_green"] = (
        "any"
    )


class FindCommonRedIndicatorsRequest(BaseModel):
    """Most frequent red indicators across an organization's families."""

    requesting_organization_id: int = Field(gt=0)
    limit: int = Field(default=5, gt=0)
    hub_filter_id: int | None = Field(default=None, gt=0)
    project_filter_id: int | None = Field(default=None, gt=0)


class DiscoverAvailableDataRequest(BaseModel):
    """List the countries or indicators present in the warehouse."""

    discovery_type: Literal["countries", "indicators"]
    country_code_filter: str | None = None


class MentorPerformanceSummaryRequest(BaseModel):
    """Survey volume and survey duration per mentor of an organization."""

    requesting_organization_id: int = Field(gt=0)
    time_period_months: int = Field(default=6, gt=0)
    sort_by: Literal["surveyCount", "averageTotalTimeMs"] = "surveyCount"
    sort_order: Literal["asc", "desc"] = "desc"
