"""
Query Matcher - classifies a question into one of the role's query types.

Matchers are tried in order by the dispatcher:
- llm: ChatAgent classification with parameter extraction
- pattern: regex intent rules (opt-in)
- basic: keyword overlap with example phrasings, always answers
"""

from .agent import create_query_matcher_agent, load_prompt
from .basic import BasicMatcher
from .llm import LLMMatcher, build_matching_prompt
from .pattern import PatternMatcher

__all__ = [
    "BasicMatcher",
    "LLMMatcher",
    "PatternMatcher",
    "build_matching_prompt",
    "create_query_matcher_agent",
    "load_prompt",
]
