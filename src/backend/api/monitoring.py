"""
Application Insights observability configuration for the query service.

Tracing is opt-in and driven by ``Settings``:
- ``ENABLE_INSTRUMENTATION``: set to "true" to enable tracing (default: false)
- ``APPLICATIONINSIGHTS_CONNECTION_STRING``: Azure Monitor connection string
- ``ENABLE_SENSITIVE_DATA``: set to "true" to record prompts and responses
"""

import logging

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def is_observability_enabled(settings: Settings | None = None) -> bool:
    """Check if OpenTelemetry observability is enabled."""
    return (settings or get_settings()).enable_instrumentation


def configure_observability(settings: Settings | None = None) -> bool:
    """
    Configure Application Insights observability if enabled.

    Returns:
        True when Azure Monitor was configured.
    """
    settings = settings or get_settings()
    if not settings.enable_instrumentation:
        logger.info("Observability disabled (ENABLE_INSTRUMENTATION != true)")
        return False

    if not settings.applicationinsights_connection_string:
        logger.warning(
            "ENABLE_INSTRUMENTATION=true but APPLICATIONINSIGHTS_CONNECTION_STRING not set. "
            "Observability will not be configured."
        )
        return False

    try:
        return _configure_azure_monitor(
            settings.applicationinsights_connection_string,
            enable_sensitive=settings.enable_sensitive_data,
        )
    except (RuntimeError, ValueError, OSError) as e:
        logger.error("Failed to configure Azure Monitor: %s", e)
        return False


def _configure_azure_monitor(connection_string: str, *, enable_sensitive: bool) -> bool:
    """Configure Azure Monitor for production telemetry."""
    try:
        from agent_framework.observability import (  # noqa: PLC0415
            create_resource,
            enable_instrumentation,
        )
        from azure.monitor.opentelemetry import (  # noqa: PLC0415  # type: ignore[import-not-found]
            configure_azure_monitor,
        )
    except ImportError:
        logger.warning(
            "azure-monitor-opentelemetry not installed. "
            "Install with: pip install 'psp-query-service[observability]'"
        )
        return False

    configure_azure_monitor(
        connection_string=connection_string,
        resource=create_resource(),
        instrumentation_options={
            "azure_sdk": {"enabled": True},
            "fastapi": {"enabled": True},
        },
    )
    # Traces the matcher agent's LLM calls
    enable_instrumentation(enable_sensitive_data=enable_sensitive)
    logging.getLogger("opentelemetry.context").setLevel(logging.CRITICAL)

    logger.info("OpenTelemetry configured with Azure Monitor (sensitive_data=%s)", enable_sensitive)
    return True
