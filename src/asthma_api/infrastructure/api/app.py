"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.

Run with uvicorn in factory mode:
    uvicorn asthma_api.infrastructure.api.app:create_app --factory
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from asthma_api.core.config import Settings, get_settings
from asthma_api.core.exceptions import AsthmaAPIError, RateLimitExceededError
from asthma_api.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from asthma_api.infrastructure.api.middleware import (
    AuthRateLimiter,
    RateLimitStore,
    SecurityHeadersMiddleware,
)
from asthma_api.infrastructure.audit import AuditSink, StructlogAuditSink
from asthma_api.infrastructure.auth.jwt_service import JWTService
from asthma_api.infrastructure.persistence.database import close_database, init_database

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings: Settings = app.state.settings

    # Startup
    configure_logging(settings)
    logger.info(
        "Starting Asthma API",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        await init_database(settings)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", exc_type=type(e).__name__, exc_info=e)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Asthma API")
    await close_database()
    logger.info("Database connection closed")


def create_app(
    settings: Settings | None = None,
    *,
    jwt_service: JWTService | None = None,
    rate_limit_store: RateLimitStore | None = None,
    audit_sink: AuditSink | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Shared services are built here and stored on ``app.state`` so each
    application instance owns its own token service, rate limiter and
    audit sink.

    Args:
        settings: Settings to use. Defaults to ``get_settings()``.
        jwt_service: Token service. Built from settings when omitted.
        rate_limit_store: Storage for the auth rate limiter. A fresh
            in-memory store is used when omitted.
        audit_sink: Destination for audit events. Defaults to structlog.

    Returns:
        FastAPI: Configured FastAPI application instance.

    Raises:
        ConfigError: If no JWT secret is configured.
    """
    settings = settings or get_settings()

    # Fails fast when the signing secret is missing
    jwt_service = jwt_service or JWTService.from_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Authentication, profile and onboarding API for the asthma care app",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.jwt_service = jwt_service
    app.state.audit_sink = audit_sink or StructlogAuditSink()
    app.state.auth_rate_limiter = (
        AuthRateLimiter.from_settings(settings, store=rate_limit_store)
        if settings.rate_limit_enabled
        else None
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app)
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """
    settings: Settings = app.state.settings

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity.
        """
        return {
            "ok": True,
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from asthma_api.infrastructure.api.routes import auth_router, profile_router

    settings: Settings = app.state.settings

    app.include_router(auth_router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
    app.include_router(profile_router, prefix=f"{settings.api_prefix}/profile", tags=["profile"])


def _field_path(loc: tuple) -> str:
    # Drop the leading "body"/"query" segment
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(AsthmaAPIError)
    async def app_error_handler(request: Request, exc: AsthmaAPIError) -> JSONResponse:
        """Render application errors as ``{"error", "code"}``."""
        headers: dict[str, str] = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)
        elif exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers["WWW-Authenticate"] = "Bearer"

        logger.info(
            "Request rejected",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            code=exc.code,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Render request validation failures as 400 with per-field details."""
        details = [
            {
                "field": _field_path(tuple(err.get("loc", ()))),
                "message": err.get("msg", "Invalid value"),
                "code": err.get("type"),
            }
            for err in exc.errors()
        ]
        logger.info(
            "Request validation failed",
            path=request.url.path,
            method=request.method,
            error_count=len(details),
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "code": "VALIDATION_ERROR", "details": details},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions without exposing their text."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            exc_type=type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log all requests and propagate a correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID") or f"cid_{uuid.uuid4().hex[:12]}"
        bind_correlation_id(correlation_id)

        logger.info("Request started", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            # Clear context to prevent leakage
            clear_context()
