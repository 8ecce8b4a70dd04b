"""Unit tests for observability configuration."""

from unittest.mock import patch

from api.monitoring import configure_observability, is_observability_enabled
from config.settings import Settings


def test_disabled_by_default(test_settings: Settings) -> None:
    assert not is_observability_enabled(test_settings)
    assert configure_observability(test_settings) is False


def test_enabled_without_connection_string(test_settings: Settings) -> None:
    settings = test_settings.model_copy(
        update={"enable_instrumentation": True, "applicationinsights_connection_string": None}
    )
    with patch("api.monitoring._configure_azure_monitor") as configure:
        assert configure_observability(settings) is False
    configure.assert_not_called()


def test_enabled_with_connection_string(test_settings: Settings) -> None:
    settings = test_settings.model_copy(
        update={
            "enable_instrumentation": True,
            "applicationinsights_connection_string": "InstrumentationKey=abc",
            "enable_sensitive_data": True,
        }
    )
    with patch("api.monitoring._configure_azure_monitor", return_value=True) as configure:
        assert configure_observability(settings) is True
    configure.assert_called_once_with("InstrumentationKey=abc", enable_sensitive=True)
