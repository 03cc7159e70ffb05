"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from promptlab import __version__
from promptlab.api.routes import api_router
from promptlab.config import Settings, get_settings
from promptlab.middleware.logging import LoggingMiddleware, configure_logging
from promptlab.middleware.request_id import RequestIdMiddleware
from promptlab.utils.errors import DispatchError, create_error_response, log_error

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown events."""
    settings: Settings = app.state.settings

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
    )

    logger.info(
        "Starting promptlab-server",
        extra={
            "version": __version__,
            "host": settings.server.host,
            "port": settings.server.port,
            "log_level": settings.logging.level,
        },
    )

    try:
        settings.validate_required()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise

    configured = sorted(provider.value for provider in settings.providers.credentials())
    logger.info(f"Provider keys configured for: {', '.join(configured) or 'none'}")

    # One pooled client for all outbound provider calls
    app.state.http_client = httpx.AsyncClient(timeout=settings.http.timeout_seconds)

    logger.info("promptlab-server started successfully")

    yield

    logger.info("Shutting down promptlab-server")
    await app.state.http_client.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="promptlab-server",
        description="FastAPI backend for sending prompts to multiple LLM providers "
        "and comparing their normalized responses",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Configure middleware (order matters - last added = first executed)
    # CORS should be outermost to handle preflight requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.server.cors.allowed_methods,
        allow_headers=settings.server.cors.allowed_headers,
    )

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(DispatchError, dispatch_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    app.include_router(api_router)

    return app


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    """Render a typed dispatch failure with its code and user-facing message."""
    request_id = getattr(request.state, "request_id", None)

    log_error(
        exc,
        code=exc.code,
        request_id=request_id,
        provider=exc.provider,
        path=request.url.path,
    )

    error_response = create_error_response(exc.code, exc.message, request_id)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json"),
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "errors": exc.errors(include_url=False),
        },
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle value errors (bad thread indexes, configuration, etc.)."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": str(exc),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "request_id": request_id,
        },
    )


# Create the default app instance
app = create_app()
