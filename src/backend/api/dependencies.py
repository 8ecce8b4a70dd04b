"""
FastAPI dependencies for authentication and shared resources.
"""

import logging
import secrets

from config.settings import Settings, get_settings
from entities.dispatcher import QueryDispatcher
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

PSP_API_KEY_HEADER = "x-psp-api-key"
UNAUTHORIZED_MESSAGE = "Unauthorized: Authentication required"


def get_app_settings() -> Settings:
    """Return application settings (overridable in tests)."""
    return get_settings()


def get_optional_user_id(request: Request) -> str | None:
    """Get user ID from request state, or None if not authenticated."""
    return getattr(request.state, "user_id", None)


def get_dispatcher(request: Request) -> QueryDispatcher:
    """
    Get the query dispatcher from app state.

    Raises HTTPException 503 if not initialized.
    """
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(status_code=503, detail="Query dispatcher not initialized")
    return dispatcher


def is_psp_request_authorized(request: Request, settings: Settings) -> bool:
    """
    Check the PSP auth gate.

    Accepts a matching ``x-psp-api-key`` header, an authenticated user
    set on ``request.state`` by upstream middleware, or any request when
    anonymous access is enabled.
    """
    api_key = request.headers.get(PSP_API_KEY_HEADER)
    if api_key and settings.psp_api_key and secrets.compare_digest(api_key, settings.psp_api_key):
        return True
    if get_optional_user_id(request):
        return True
    return settings.allow_anonymous
