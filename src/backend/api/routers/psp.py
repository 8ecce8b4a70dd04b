"""
PSP analytics tool routes.

``POST /api/psp/<tool>`` runs one fixed, parameterized analytics query.
Responses use the PSP envelope: ``{"error": true, "message": ...}`` on
failure, the tool's camelCase payload on success.
"""

import logging
from typing import Any

from api.dependencies import UNAUTHORIZED_MESSAGE, get_app_settings, is_psp_request_authorized
from config.settings import Settings
from entities.psp_tools import PSP_TOOLS
from entities.shared.protocols import SqlExecutor
from fastapi import APIRouter, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/psp", tags=["psp"])


def _envelope(status_code: int, message: str, **extra: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"error": True, "message": message, **extra}),
    )


async def run_psp_tool(
    tool_name: str,
    body: Any,  # noqa: ANN401
    sql_executor: SqlExecutor | None,
) -> JSONResponse:
    """Validate ``body`` for ``tool_name``, run the tool and shape the response."""
    tool = PSP_TOOLS.get(tool_name)
    if tool is None:
        return _envelope(status.HTTP_404_NOT_FOUND, f"Unknown PSP tool: {tool_name}")

    try:
        params = tool.request_model.model_validate(body)
    except ValidationError as e:
        return _envelope(
            status.HTTP_400_BAD_REQUEST,
            "Validation error",
            details=e.errors(include_url=False, include_context=False),
        )

    if sql_executor is None:
        return _envelope(status.HTTP_503_SERVICE_UNAVAILABLE, "Database not initialized")

    try:
        result = await tool.run(sql_executor, params)
    except Exception as e:
        logger.exception("Error in %s", tool_name)
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Database error: {e}")

    return JSONResponse(content=jsonable_encoder(result))


@router.post("/{tool_name}")
async def psp_tool(
    tool_name: str,
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Run the named PSP analytics tool."""
    if not is_psp_request_authorized(request, settings):
        logger.warning("Rejected unauthenticated PSP request to %s", tool_name)
        return _envelope(status.HTTP_401_UNAUTHORIZED, UNAUTHORIZED_MESSAGE)

    try:
        body = await request.json()
    except ValueError:
        body = None
    sql_executor = getattr(request.app.state, "sql_client", None)
    return await run_psp_tool(tool_name, body, sql_executor)
