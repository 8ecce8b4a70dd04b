"""
Parameter Extractor - pulls structured values out of user questions.

Used by the matchers to fill template parameters the question implies
(date ranges, dimensions, family references, status filters).
"""

from .extractor import (
    DIMENSIONS,
    FamilyLookup,
    StaticFamilyLookup,
    extract_country_filter,
    extract_date_range,
    extract_dimensions,
    extract_family_reference,
    extract_program_type,
    extract_status_change,
    extract_status_filter,
)

__all__ = [
    "DIMENSIONS",
    "FamilyLookup",
    "StaticFamilyLookup",
    "extract_country_filter",
    "extract_date_range",
    "extract_dimensions",
    "extract_family_reference",
    "extract_program_type",
    "extract_status_change",
    "extract_status_filter",
]
