"""Toastrank API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from toastrank.comments.router import router as comments_router
from toastrank.comments.service import CommentService
from toastrank.config import Settings, get_settings
from toastrank.core.context import clear_context, get_request_id
from toastrank.core.database import (
    CassandraToasterStore,
    init_async_cassandra,
    shutdown_async_cassandra,
)
from toastrank.core.logging import configure_structlog, get_logger
from toastrank.core.middleware import RequestContextMiddleware
from toastrank.core.redis import init_redis, shutdown_redis
from toastrank.decorations import BannerProvider
from toastrank.decorations.dependencies import get_banner_provider, pick_banner
from toastrank.health.router import router as health_router
from toastrank.moderation.router import router as moderation_router
from toastrank.moderation.service import ModerationService
from toastrank.storage import LocalImageStorage
from toastrank.toasters.cache import ToasterCache
from toastrank.toasters.router import router as toasters_router
from toastrank.toasters.service import ToasterService
from toastrank.uploads.router import router as uploads_router
from toastrank.uploads.service import UploadService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def install_services(
    app: FastAPI,
    store: Any,
    settings: Settings,
    redis_client: Any = None,
) -> None:
    """Wire services onto ``app.state`` for dependency injection.

    Args:
        app: Application instance
        store: ToasterStore implementation
        settings: Application settings
        redis_client: Optional Redis client for the ranking cache
    """
    cache = ToasterCache(redis_client, settings.ranking_cache_ttl_seconds)
    storage = LocalImageStorage(settings)

    app.state.toaster_service = ToasterService(store, settings, cache)
    app.state.comment_service = CommentService(store)
    app.state.upload_service = UploadService(store, storage, settings, cache)
    app.state.moderation_service = ModerationService(store, storage, settings, cache)
    app.state.banner_provider = BannerProvider(Path(settings.banner_dir))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)

    # Initialize Redis (non-critical - rankings are computed uncached without it)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - hall of fame cache disabled",
        )

    # Initialize Cassandra (async)
    try:
        session = await init_async_cassandra()
        app.state.cassandra_session = session
        store = CassandraToasterStore(session, settings.cassandra_keyspace)
        install_services(app, store, settings, redis_client)
        logger.info("toaster_services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Never let Starlette render stack traces; handlers below log details.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Upload, rate and discuss toasters",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        content: dict[str, Any] = {
            "error": True,
            "message": str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error",
            "status_code": exc.status_code,
            "request_id": request_id,
        }
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            content["banner"] = await pick_banner(
                await get_banner_provider(request)
            )

        return ORJSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler; details go to the log, never to the client."""
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        # Request context is still bound here (see RequestContextMiddleware)
        clear_context()

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(toasters_router)
    app.include_router(uploads_router)
    app.include_router(comments_router)
    app.include_router(moderation_router)

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn (console entry point)."""
    import uvicorn

    uvicorn.run(
        "toastrank.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload and settings.is_development,
    )
