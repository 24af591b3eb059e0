"""FastAPI application entry point."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from ppdo import __version__
from ppdo.api.ratelimit import limiter, rate_limit_exceeded_handler
from ppdo.api.router import api_router
from ppdo.config import get_settings
from ppdo.infrastructure.database.connection import dispose_engine
from ppdo.observability.metrics import setup_metrics
from ppdo.shared.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PPDOError,
    UnauthorizedError,
    ValidationError,
)
from ppdo.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging()
    logger.info("ppdo_search_starting", version=__version__)

    settings = get_settings()
    if getattr(app.state, "auth_provider", None) is None:
        from ppdo.api.middleware.auth import build_auth_provider

        app.state.auth_provider = build_auth_provider(settings)

    yield

    # Shutdown
    logger.info("ppdo_search_stopping")
    auth_provider = getattr(app.state, "auth_provider", None)
    if auth_provider is not None:
        await auth_provider.close()
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="PPDO Search API",
        description="Search indexing and ranking for the PPDO dashboard",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Rate limiting
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # CORS middleware
    if settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_context_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Caller identity is bound per request by the auth dependency
        structlog.contextvars.clear_contextvars()
        return await call_next(request)

    # Exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router, prefix="/api/v1")

    # Observability
    setup_metrics(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "Request validation failed",
                "details": {"errors": _jsonable_errors(exc)},
            },
        )

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=401,
            content={
                "error": "authentication_error",
                "message": exc.message,
            },
        )

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=403,
            content={
                "error": "unauthorized",
                "message": exc.message,
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=409,
            content={
                "error": "conflict",
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(PPDOError)
    async def ppdo_error_handler(request: Request, exc: PPDOError) -> JSONResponse:
        _ = request
        logger.error("unhandled_error", error=exc.message, details=exc.details)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An internal error occurred",
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request
        logger.exception("unexpected_error", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred",
            },
        )


def _jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Request validation errors without the non-serializable ``ctx`` values."""
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


# Create app instance
app = create_app()
