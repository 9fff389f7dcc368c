"""FastAPI application setup for the Markpress API.

This module creates and configures the FastAPI application with lifespan
management for the key-value store and identity provider, request tracking,
error mapping and routing setup.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from markpress import __version__
from markpress.services.exceptions import (
    AuthError,
    ForbiddenError,
    IdentityProviderError,
    NotFoundError,
    ServiceError,
    StoreError,
    ValidationError,
)
from markpress.shared.config import get_settings
from markpress.shared.identity import HTTPIdentityProvider
from markpress.shared.kv_store import RedisKVStore
from markpress.shared.log_config import configure_logging
from markpress.web.api.routers.auth import router as auth_router
from markpress.web.api.routers.blogs import router as blogs_router
from markpress.web.api.routers.comments import router as comments_router
from markpress.web.api.routers.tags import router as tags_router
from markpress.web.api.routers.users import router as users_router
from markpress.web.api.schemas import ErrorDetail, ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage FastAPI application lifespan.

    Creates the Redis-backed store and the identity provider client unless
    they were already placed on ``app.state``, and closes what it created
    on shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None: Control to the application
    """
    settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings
    configure_logging(settings)

    owned = []
    if getattr(app.state, "store", None) is None:
        app.state.store = RedisKVStore.from_settings(settings)
        owned.append(app.state.store)
        if await app.state.store.ping():
            logger.info("Key-value store connection successful")
    if getattr(app.state, "identity_provider", None) is None:
        app.state.identity_provider = HTTPIdentityProvider.from_settings(settings)
        owned.append(app.state.identity_provider)

    try:
        yield
    finally:
        for resource in owned:
            await resource.close()
        app.state.store = None
        app.state.identity_provider = None


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _verbose_errors(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None) or get_settings()
    return settings.verbose_errors_enabled and settings.is_development


def error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    errors: Optional[List[ErrorDetail]] = None,
    headers: Optional[dict] = None
) -> JSONResponse:
    """Build the JSON error body shared by every handler.

    Args:
        request: FastAPI request object
        status_code: HTTP status code
        error_type: Error type identifier
        message: Human readable message
        errors: Optional per-field details
        headers: Optional response headers

    Returns:
        JSONResponse: Formatted error response
    """
    response = ErrorResponse(
        error=message,
        detail=message,
        type=error_type,
        errors=errors,
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(exclude_none=True),
        headers=headers,
    )


def _log_extra(request: Request, exc: Exception) -> dict:
    return {
        "request_id": _request_id(request),
        "url": str(request.url),
        "method": request.method,
        "error": str(exc),
    }


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("Validation failed", extra=_log_extra(request, exc))
    return error_response(
        request,
        400,
        "validation_error",
        exc.get_user_message(),
        errors=[ErrorDetail(code=exc.error_code, message=exc.get_user_message(), field=exc.field)],
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request schema errors as 400 with per-field details."""
    errors = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(ErrorDetail(
            code=error["type"],
            message=error["msg"],
            field=field_path
        ))

    logger.warning(
        "Request validation error",
        extra={
            "request_id": _request_id(request),
            "url": str(request.url),
            "method": request.method,
            "errors": [error.model_dump() for error in errors]
        }
    )
    return error_response(request, 400, "validation_error", "Request validation failed", errors=errors)


async def auth_exception_handler(request: Request, exc: AuthError) -> JSONResponse:
    logger.info("Unauthenticated request", extra=_log_extra(request, exc))
    return error_response(
        request,
        401,
        "unauthorized_error",
        exc.get_user_message(),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def forbidden_exception_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
    logger.warning("Forbidden request", extra=_log_extra(request, exc))
    return error_response(request, 403, "forbidden_error", exc.get_user_message())


async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("Resource not found", extra=_log_extra(request, exc))
    return error_response(request, 404, "not_found_error", exc.get_user_message())


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(f"Store operation error: {exc}", extra=_log_extra(request, exc))
    if _verbose_errors(request):
        detail = f"Store error: {exc}"
    else:
        detail = exc.get_user_message()
    return error_response(request, 500, "store_error", detail)


async def identity_exception_handler(request: Request, exc: IdentityProviderError) -> JSONResponse:
    logger.error(f"Identity provider error: {exc}", extra=_log_extra(request, exc))
    return error_response(request, 502, "identity_provider_error", exc.get_user_message())


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error(f"Service error: {exc}", extra=_log_extra(request, exc))
    return error_response(request, 500, "service_error", exc.get_user_message())


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions globally."""
    logger.exception(
        "Unhandled exception",
        extra={
            "request_id": _request_id(request),
            "url": str(request.url),
            "method": request.method,
            "exception_type": type(exc).__name__
        }
    )

    if _verbose_errors(request):
        detail = f"Internal server error: {exc}"
    else:
        detail = "Internal server error"
    return error_response(request, 500, "internal_error", detail)


def create_app() -> FastAPI:
    """Build the FastAPI application from the current settings."""
    settings = get_settings()

    app = FastAPI(
        title="Markpress API",
        description="Content API for blogs, comments, profiles and tags",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Tag the request with an ID and log one line per request."""
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["x-request-id"] = request_id
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(elapsed_ms, 1),
            }
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=600,
    )

    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(AuthError, auth_exception_handler)
    app.add_exception_handler(ForbiddenError, forbidden_exception_handler)
    app.add_exception_handler(NotFoundError, not_found_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)
    app.add_exception_handler(IdentityProviderError, identity_exception_handler)
    app.add_exception_handler(ServiceError, service_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    prefix = settings.api_prefix
    app.include_router(auth_router, prefix=prefix, tags=["Authentication"])
    app.include_router(blogs_router, prefix=prefix)
    app.include_router(comments_router, prefix=prefix)
    app.include_router(users_router, prefix=prefix)
    app.include_router(tags_router, prefix=prefix)

    @app.get(f"{prefix}/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint for monitoring."""
        return HealthResponse(status="ok")

    return app


api = create_app()
