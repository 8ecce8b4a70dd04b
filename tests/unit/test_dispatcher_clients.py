"""Unit tests for the dispatcher client factory."""

from unittest.mock import MagicMock, patch

from config.settings import Settings
from entities.dispatcher import create_dispatcher, create_dispatcher_clients

from tests.conftest import FakeSqlExecutor


def _names(matchers: tuple) -> list[str]:
    return [m.name for m in matchers]


def test_basic_only_without_endpoint(test_settings: Settings) -> None:
    clients = create_dispatcher_clients(test_settings, FakeSqlExecutor())
    assert _names(clients.matchers) == ["basic"]
    assert clients.matcher_agent is None


def test_pattern_matcher_opt_in(test_settings: Settings) -> None:
    settings = test_settings.model_copy(update={"enable_pattern_matcher": True})
    clients = create_dispatcher_clients(settings, FakeSqlExecutor())
    assert _names(clients.matchers) == ["pattern", "basic"]


def test_llm_first_with_endpoint(test_settings: Settings) -> None:
    settings = test_settings.model_copy(
        update={
            "azure_ai_project_endpoint": "https://example.services.ai.azure.com/api/projects/p",
            "azure_ai_query_matcher_model": "matcher-model",
        }
    )
    agent = MagicMock()
    with (
        patch("entities.dispatcher.clients.DefaultAzureCredential") as credential,
        patch("entities.dispatcher.clients.AzureAIClient") as client,
        patch("entities.dispatcher.clients.create_query_matcher_agent", return_value=agent),
    ):
        clients = create_dispatcher_clients(settings, FakeSqlExecutor())

    credential.assert_called_once_with()
    assert client.call_args.kwargs["model_deployment_name"] == "matcher-model"
    assert _names(clients.matchers) == ["llm", "basic"]
    assert clients.matcher_agent is agent


def test_create_dispatcher_passes_confidence_gate(test_settings: Settings) -> None:
    settings = test_settings.model_copy(update={"min_match_confidence": 50.0})
    dispatcher = create_dispatcher(settings, FakeSqlExecutor())
    assert _names(dispatcher.matchers) == ["basic"]
    assert dispatcher._min_confidence == 50.0
