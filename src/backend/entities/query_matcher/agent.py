"""
Query Matcher Agent - factory for the LLM classification agent.

The agent maps a user's question onto one of the role's query templates
and extracts parameter values. It uses no tools; it is pure LLM reasoning.
"""

from pathlib import Path

from agent_framework import ChatAgent
from agent_framework_azure_ai import AzureAIClient

DEFAULT_TEMPERATURE = 0.2


def load_prompt() -> str:
    """Load the prompt from prompt.md in this folder."""
    return (Path(__file__).parent / "prompt.md").read_text(encoding="utf-8")


def create_query_matcher_agent(
    client: AzureAIClient,
    instructions: str,
    temperature: float = DEFAULT_TEMPERATURE,
) -> ChatAgent:
    """Create a query matcher ChatAgent.

    Args:
        client: Azure AI client for LLM access.
        instructions: Agent system prompt text.
        temperature: Sampling temperature; kept low for stable classification.

    Returns:
        Configured ChatAgent for query matching.
    """
    return ChatAgent(
        name="query-matcher-agent",
        instructions=instructions,
        chat_client=client,
        temperature=temperature,
    )
