"""
Template Registry - the static catalogue of query templates per role.
"""

from .registry import (
    QUERY_TEMPLATES,
    ROLE_MENTOR,
    ROLE_ORGANIZATION_HEAD,
    ROLE_PSP_HEAD,
    TemplateRegistry,
)

__all__ = [
    "QUERY_TEMPLATES",
    "ROLE_MENTOR",
    "ROLE_ORGANIZATION_HEAD",
    "ROLE_PSP_HEAD",
    "TemplateRegistry",
]
