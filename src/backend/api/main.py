"""
FastAPI server for the Poverty Stoplight query service.

This module handles application setup, lifespan management, and middleware configuration.
Route handlers are organized in the routers/ package:
- query: natural-language questions answered by template functions
- psp: fixed analytics tools for the PSP chat agent
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from api.monitoring import configure_observability, is_observability_enabled
from api.routers import psp_router, query_router
from config.settings import get_settings
from dotenv import load_dotenv
from entities.dispatcher import create_dispatcher
from entities.shared.sql_client import PostgresClient
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

# Configure logging - use force=True to prevent duplicate handlers
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, force=True)

# Reduce noise from Azure SDK and other libraries
logging.getLogger("azure").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncpg").setLevel(logging.WARNING)
# Reduce agent_framework verbosity (it logs all message content at INFO level)
logging.getLogger("agent_framework").setLevel(logging.WARNING)

# Configure observability before creating the app
configure_observability()


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Opens the database pool and builds the query dispatcher on startup;
    closes the pool on shutdown.
    """
    settings = get_settings()
    logger.info("PSP query service starting")

    if is_observability_enabled(settings):
        logger.info("OpenTelemetry observability is ENABLED")
    else:
        logger.info(
            "OpenTelemetry observability is disabled (set ENABLE_INSTRUMENTATION=true to enable)"
        )

    if settings.allow_anonymous:
        logger.warning("=" * 60)
        logger.warning("WARNING: Running with ALLOW_ANONYMOUS=true")
        logger.warning("PSP endpoints accept unauthenticated requests.")
        logger.warning("DO NOT use this setting in production.")
        logger.warning("=" * 60)

    sql_client = PostgresClient.from_settings(settings)
    await sql_client.open()
    application.state.sql_client = sql_client
    application.state.dispatcher = create_dispatcher(settings, sql_client)

    try:
        yield
    finally:
        await sql_client.close()
        application.state.dispatcher = None
        application.state.sql_client = None
        logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(title="Poverty Stoplight Query Service", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(query_router)
app.include_router(psp_router)


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint."""
    dispatcher_ready = getattr(app.state, "dispatcher", None) is not None
    return {"status": "healthy", "dispatcher_ready": dispatcher_ready}


if __name__ == "__main__":
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)  # noqa: S104
