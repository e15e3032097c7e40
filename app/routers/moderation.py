import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.clients.llm_client import GeminiClient, get_llm_client
from app.schemas.moderation import ModerationVerdict, ErrorResponse
from app.services.moderation_service import handle_moderation
from app.core.exceptions import BadRequestException, ContentModeratorException
from app.core.moderation_contract import (
    CANONICAL_CONTENT_FIELD,
    COMBINED_CONTENT_FIELD,
    USER_CONTENT_FIELD,
)
from app.core.logger import logger

router = APIRouter(tags=["moderation"])

# The handler answers these methods itself; the 405 handler in main.py covers the rest
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

MODERATION_PATHS = ("/api/v1/moderate", "/api/moderate-content", "/api/moderation")

ROUTE_RESPONSES = {
    200: {"model": ModerationVerdict, "description": "Moderation verdict"},
    400: {"model": ErrorResponse, "description": "Missing content"},
    405: {"model": ErrorResponse, "description": "Only POST is allowed"},
    500: {"model": ErrorResponse, "description": "Configuration or upstream failure"},
}


async def read_json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise BadRequestException(
            "Request body must be valid JSON.",
            field="body",
            details=str(e)
        ) from e


async def moderate(request: Request, client: Optional[GeminiClient], content_field: str) -> JSONResponse:
    """Adapter between an HTTP route and the moderation handler."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Moderation request received",
        extra={
            "request_id": request_id,
            "method": request.method,
            "content_field": content_field
        }
    )

    try:
        body = await read_json_body(request) if request.method == "POST" else None
        verdict = await handle_moderation(request.method, body, client, content_field)
        return JSONResponse(status_code=200, content=verdict)

    except ContentModeratorException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in moderation",
            extra={
                "request_id": request_id,
                "error": str(e)
            },
            exc_info=True
        )
        raise ContentModeratorException(
            "Failed to process moderation request.",
            error_code="INTERNAL_SERVER_ERROR",
            details=str(e)
        ) from e


@router.api_route("/api/v1/moderate", methods=ROUTED_METHODS, responses=ROUTE_RESPONSES)
async def moderate_content(request: Request, client: Optional[GeminiClient] = Depends(get_llm_client)):
    """
    Moderate user-submitted text.

    Expects a JSON body ``{"content": "..."}`` and returns the verdict
    ``{"is_safe", "categories_flagged", "moderator_comment"}`` unwrapped.
    """
    return await moderate(request, client, CANONICAL_CONTENT_FIELD)


@router.api_route(
    "/api/moderate-content",
    methods=ROUTED_METHODS,
    responses=ROUTE_RESPONSES,
    include_in_schema=False
)
async def moderate_user_content(request: Request, client: Optional[GeminiClient] = Depends(get_llm_client)):
    """Legacy route taking ``{"userContent": "..."}``."""
    return await moderate(request, client, USER_CONTENT_FIELD)


@router.api_route(
    "/api/moderation",
    methods=ROUTED_METHODS,
    responses=ROUTE_RESPONSES,
    include_in_schema=False
)
async def moderate_combined_content(request: Request, client: Optional[GeminiClient] = Depends(get_llm_client)):
    """Legacy route taking ``{"combinedContent": "..."}``."""
    return await moderate(request, client, COMBINED_CONTENT_FIELD)
