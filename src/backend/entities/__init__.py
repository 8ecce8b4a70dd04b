"""
Entities package.

Each subdirectory represents one stage of answering a question:
- template_registry/: static catalogue of query templates per role
- parameter_extractor/: deterministic extraction of dates, dimensions, families
- query_matcher/: LLM, pattern and keyword matchers
- dispatcher/: matcher chain, parameter binding and execution
- psp_tools/: parameterized queries behind the PSP analytics endpoints
- shared/: clause builder, SQL client, errors and protocols
"""
