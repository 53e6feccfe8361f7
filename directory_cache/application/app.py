#!/usr/bin/env python3
"""
FastAPI Application Factory

Builds the directory cache service: one CacheManager per application, the
entity caches on top of it, the page routes and the admin cache routes.

The database collaborator is passed in; the service never constructs one.

    app = create_app(data_source=MyRepository(session_factory))
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from directory_cache.application.api.routes.admin import router as admin_router
from directory_cache.application.api.routes.pages import router as pages_router
from directory_cache.caching import HomepageCache, PersonCache, TownCache
from directory_cache.core.config.constants import HEADER_REQUEST_ID
from directory_cache.core.config.settings import Settings, get_settings
from directory_cache.core.exceptions import CacheKeyError, ConfigurationError, DirectoryCacheError
from directory_cache.core.logging import (
    clear_request_id,
    get_logger,
    set_request_id,
    setup_logging,
)
from directory_cache.data.source import DirectoryDataSource
from directory_cache.infrastructure.cache.cache_manager import CacheManager, RedisClientFactory
from directory_cache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).

    Startup connects Redis and starts the memory sweep; shutdown waits for
    pending Redis writes before disconnecting.
    """
    settings: Settings = app.state.settings
    manager: CacheManager = app.state.cache_manager

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)
    logger.info(
        "Starting directory cache service",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    try:
        await manager.initialize()
        logger.info("Application startup complete", cache_enabled=manager.is_cache_enabled())

        yield

    finally:
        logger.info("Shutting down application")
        await manager.shutdown()
        logger.info("Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    data_source: DirectoryDataSource,
    settings: Settings | None = None,
    redis_client_factory: RedisClientFactory = RedisClient,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        data_source: Database collaborator serving directory rows
        settings: Configuration (defaults to the environment-loaded singleton)
        redis_client_factory: Redis client builder, swapped out in tests

    Returns:
        FastAPI: Configured application instance

    Raises:
        ConfigurationError: If API_BASE_PATH cannot be used as a router prefix
    """
    settings = settings or get_settings()
    base_path = settings.app.API_BASE_PATH
    if base_path and (not base_path.startswith("/") or base_path.endswith("/")):
        raise ConfigurationError(
            "API_BASE_PATH must start with '/' and must not end with one",
            details={"API_BASE_PATH": base_path},
        )

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Multi-tier read-through cache for directory page data",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    manager = CacheManager(settings, redis_client_factory=redis_client_factory)
    app.state.settings = settings
    app.state.cache_manager = manager
    app.state.homepage_cache = HomepageCache(manager, data_source)
    app.state.town_cache = TownCache(manager, data_source)
    app.state.person_cache = PersonCache(manager, data_source)

    # ========================================================================
    # ROUTER REGISTRATION
    # ========================================================================
    # All endpoints live under API_BASE_PATH (default /api/v1), e.g.
    # GET /api/v1/persons/{town}/{person}, GET /api/v1/admin/cache/stats

    app.include_router(pages_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)

    # ========================================================================
    # MIDDLEWARE
    # ========================================================================

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Inject a request ID into the logging context and echo it back."""
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)

        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response

        finally:
            clear_request_id()

    # ========================================================================
    # EXCEPTION HANDLERS
    # ========================================================================

    @app.exception_handler(CacheKeyError)
    async def cache_key_exception_handler(request: Request, exc: CacheKeyError):
        """Empty or malformed slugs in the path."""
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(DirectoryCacheError)
    async def directory_cache_exception_handler(request: Request, exc: DirectoryCacheError):
        request_id = exc.request_id or request.headers.get(HEADER_REQUEST_ID)
        logger.error(
            f"Directory cache exception: {exc.message}",
            error_type=type(exc).__name__,
            details=exc.details,
        )
        return JSONResponse(
            status_code=500,
            content=exc.to_dict(),
            headers={HEADER_REQUEST_ID: request_id or ""},
        )

    @app.get("/", tags=["Root"])
    async def root():
        """Service information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "cache_enabled": manager.is_cache_enabled(),
        }

    return app
