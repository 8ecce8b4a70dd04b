"""
Natural-language query route.

``POST /api/query`` classifies the question for the caller's role, runs
the matched analytics function and returns its rows with match metadata.
"""

import logging
import uuid
from typing import Any

from api.dependencies import get_dispatcher
from entities.dispatcher import QueryDispatcher
from entities.shared.errors import QueryServiceError
from entities.shared.protocols import LoggingReporter
from fastapi import APIRouter, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from models import QueryRequest, RequestContext
from pydantic import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["query"])

INVALID_REQUEST_MESSAGE = "Request body must include 'query' and 'userType'."
INTERNAL_ERROR_MESSAGE = "Failed to execute query"


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def answer_query(body: Any, dispatcher: QueryDispatcher) -> JSONResponse:  # noqa: ANN401
    """Validate ``body``, dispatch it and shape the HTTP response.

    Domain failures map to their own status and message. Anything else is
    logged with a correlation ID and answered with a generic 500 so no
    internal detail reaches the client.
    """
    try:
        payload = QueryRequest.model_validate(body)
    except ValidationError:
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST_MESSAGE)

    context = RequestContext(organization_id=payload.organization_id, user_id=payload.user_id)
    try:
        result = await dispatcher.handle(
            payload.query,
            payload.user_type,
            context,
            reporter=LoggingReporter(),
        )
    except QueryServiceError as e:
        if e.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            correlation_id = uuid.uuid4().hex[:12]
            logger.error("Query failed [%s]: %s", correlation_id, e.__cause__ or e)
            return _error(e.status_code, e.message, correlation_id=correlation_id)
        return _error(e.status_code, e.message)
    except Exception:
        correlation_id = uuid.uuid4().hex[:12]
        logger.exception("Unexpected query error [%s]", correlation_id)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            INTERNAL_ERROR_MESSAGE,
            correlation_id=correlation_id,
        )

    response = result.to_response()
    return JSONResponse(content=jsonable_encoder(response.model_dump(mode="json", by_alias=True)))


@router.post("/query")
async def run_query(
    request: Request,
    dispatcher: QueryDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Answer a natural-language question with the matching analytics query."""
    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST_MESSAGE)
    return await answer_query(body, dispatcher)
