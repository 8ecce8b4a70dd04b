"""Dispatcher client container and factory.

``DispatcherClients`` bundles the matcher chain and I/O dependencies of
the query dispatcher. Production code constructs it via
``create_dispatcher_clients()`` from real Azure clients; tests construct
it (or the ``QueryDispatcher`` directly) from in-memory fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from agent_framework import ChatAgent
from agent_framework_azure_ai import AzureAIClient
from azure.identity.aio import DefaultAzureCredential
from config.settings import Settings
from entities.dispatcher.dispatcher import QueryDispatcher
from entities.query_matcher import (
    BasicMatcher,
    LLMMatcher,
    PatternMatcher,
    create_query_matcher_agent,
    load_prompt,
)
from entities.shared.protocols import Matcher, SqlExecutor
from entities.template_registry import TemplateRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatcherClients:
    """Immutable bundle of the dispatcher's dependencies.

    Args:
        registry: Template catalogue shared by matchers and dispatcher.
        matchers: Ordered matcher chain.
        sql_executor: Service for executing SQL queries.
        matcher_agent: ChatAgent behind the LLM matcher, if configured.
    """

    registry: TemplateRegistry
    matchers: tuple[Matcher, ...]
    sql_executor: SqlExecutor
    matcher_agent: ChatAgent | None = None


def create_matcher_agent(settings: Settings) -> ChatAgent | None:
    """Create the query matcher ChatAgent, or ``None`` without an endpoint."""
    if not settings.azure_ai_project_endpoint:
        logger.warning("AZURE_AI_PROJECT_ENDPOINT not set - LLM matcher disabled")
        return None

    credential = (
        DefaultAzureCredential(managed_identity_client_id=settings.azure_client_id)
        if settings.azure_client_id
        else DefaultAzureCredential()
    )
    matcher_model = (
        settings.azure_ai_query_matcher_model or settings.azure_ai_model_deployment_name
    )
    chat_client = AzureAIClient(
        project_endpoint=settings.azure_ai_project_endpoint,
        credential=credential,
        model_deployment_name=matcher_model,
        use_latest_version=True,
    )
    return create_query_matcher_agent(
        chat_client,
        load_prompt(),
        temperature=settings.query_matcher_temperature,
    )


def create_dispatcher_clients(
    settings: Settings,
    sql_executor: SqlExecutor,
    registry: TemplateRegistry | None = None,
) -> DispatcherClients:
    """Build ``DispatcherClients`` from application ``Settings``.

    The chain is LLM (when an endpoint is configured), then pattern (when
    enabled), then basic, which always answers for a known role.

    Args:
        settings: Centralised application configuration.
        sql_executor: Executor bound to the open database pool.
        registry: Template catalogue. Defaults to the built-in one.

    Returns:
        Fully-initialised ``DispatcherClients``.
    """
    registry = registry or TemplateRegistry()
    agent = create_matcher_agent(settings)

    matchers: list[Matcher] = []
    if agent is not None:
        matchers.append(LLMMatcher(agent, registry))
    if settings.enable_pattern_matcher:
        matchers.append(PatternMatcher(registry))
    matchers.append(BasicMatcher(registry))

    logger.info("Matcher chain: %s", " -> ".join(m.name for m in matchers))
    return DispatcherClients(
        registry=registry,
        matchers=tuple(matchers),
        sql_executor=sql_executor,
        matcher_agent=agent,
    )


def create_dispatcher(
    settings: Settings,
    sql_executor: SqlExecutor,
    registry: TemplateRegistry | None = None,
) -> QueryDispatcher:
    """Build a ready-to-use ``QueryDispatcher``."""
    clients = create_dispatcher_clients(settings, sql_executor, registry)
    return QueryDispatcher(
        clients.matchers,
        clients.registry,
        clients.sql_executor,
        min_confidence=settings.min_match_confidence,
    )
