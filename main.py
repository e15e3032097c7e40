from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid
from contextlib import asynccontextmanager

from app.routers import moderation
from app.clients.llm_client import build_llm_client
from app.core.logger import logger
from app.core.exceptions import (
    ContentModeratorException,
    MethodNotAllowedException,
    create_error_response,
    get_status_code,
)
from app.core.config import settings

VERSION = "1.0.0"

# Application lifespan management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management for startup and shutdown events."""
    logger.info(f"Starting {settings.app_name}", extra={"version": VERSION})

    # One Gemini client per process, shared read-only by every request
    app.state.llm_client = build_llm_client(settings)

    yield

    logger.info(f"Shutting down {settings.app_name}")

app = FastAPI(
    title=settings.app_name,
    description="""
    Forwards user-submitted text to Google Gemini for content moderation and
    returns a structured verdict.

    ## Verdict

    * `is_safe`: true when no guideline violation was detected
    * `categories_flagged`: violated categories such as Hate Speech, Harassment,
      Graphic Violence or Self-Harm (empty when safe)
    * `moderator_comment`: brief justification

    ## Error Handling

    All errors return JSON with:
    - `error`: Human-readable error description
    - `error_code`: Machine-readable error identifier
    - `details`: Underlying cause, when available
    """,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# The moderation endpoints are called directly from browser scripts
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to all requests for tracing."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        extra={
            "request_id": request_id,
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else "unknown"
        }
    )

    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        "Request completed",
        extra={
            "request_id": request_id,
            "status_code": response.status_code,
            "process_time": process_time
        }
    )

    return response

# Global exception handler
@app.exception_handler(ContentModeratorException)
async def content_moderator_exception_handler(request: Request, exc: ContentModeratorException):
    """Handle custom application exceptions."""
    status_code = get_status_code(exc)
    message = f"Content Moderator exception: {exc.message}"
    if exc.details:
        message = f"{message} | details: {exc.details}"
    if exc.__cause__ is not None:
        message = f"{message} | cause: {exc.__cause__!r}"

    log = logger.warning if status_code < 500 else logger.error
    log(
        message,
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "error_code": exc.error_code,
            "details": exc.details,
            "cause": repr(exc.__cause__) if exc.__cause__ else None
        }
    )

    headers = None
    if isinstance(exc, MethodNotAllowedException):
        headers = {"Allow": exc.allowed}

    return JSONResponse(
        status_code=status_code,
        content=create_error_response(exc),
        headers=headers
    )

# Methods outside ROUTED_METHODS are rejected by the router before reaching the handler
@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Give router-level 405s on moderation routes the same error body as the handler's."""
    if exc.status_code == 405 and request.url.path in moderation.MODERATION_PATHS:
        return await content_moderator_exception_handler(
            request, MethodNotAllowedException(request.method)
        )
    return await http_exception_handler(request, exc)

# Include routers
app.include_router(moderation.router)

# Health check endpoint
@app.get("/health", tags=["monitoring"])
async def health_check(request: Request):
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        Health status and whether the Gemini credential is configured
    """
    llm_configured = getattr(request.app.state, "llm_client", None) is not None
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": VERSION,
        "services": {
            "api": "healthy",
            "gemini": "configured" if llm_configured else "missing_credentials"
        }
    }

# Root endpoint
@app.get("/", tags=["general"])
async def root():
    """
    Root endpoint with API information.

    Returns:
        Basic API information and links
    """
    return {
        "message": settings.app_name,
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "moderation": "/api/v1/moderate",
            "moderate_content": "/api/moderate-content",
            "moderation_combined": "/api/moderation"
        }
    }
