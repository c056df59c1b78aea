#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Configures the FastAPI application for the config cache service: builds the
server cache and menu service, registers middleware, routes and exception
handlers.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stepcache.application.api.routes.admin import router as admin_router
from stepcache.application.api.routes.debug import router as debug_router
from stepcache.application.api.routes.menus import router as menus_router
from stepcache.application.api.routes.system import router as system_router
from stepcache.application.services.menu_service import InMemoryMenuRepository, MenuService
from stepcache.core.config.constants import HEADER_REQUEST_ID
from stepcache.core.config.settings import Settings, get_settings
from stepcache.core.exceptions import StepCacheError
from stepcache.core.interfaces.clock import Clock
from stepcache.core.interfaces.reporting import ErrorReporter
from stepcache.core.logging.logger import clear_request_id, get_logger, set_request_id, setup_logging
from stepcache.infrastructure.cache.server_cache import ServerCache

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).

    Startup configures logging and warms the server caches so the first
    request does not pay for the upstream fetch.
    """
    settings: Settings = app.state.settings

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting config cache service",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    summary = await app.state.server_cache.warm_caches(app.state.menu_service.warmers())
    logger.info("Application startup complete", **summary)

    yield

    logger.info("Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: Settings | None = None,
    repository: InMemoryMenuRepository | None = None,
    clock: Clock | None = None,
    error_reporter: ErrorReporter | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Every argument is optional; tests pass their own settings, repository
    and clock to get an isolated application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Menu configuration service with revalidating, circuit-breaking server cache",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    server_cache = ServerCache(settings=settings, clock=clock, error_reporter=error_reporter)
    repository = repository or InMemoryMenuRepository(clock=clock)

    app.state.settings = settings
    app.state.server_cache = server_cache
    app.state.menu_service = MenuService(server_cache, repository)

    # ========================================================================
    # MIDDLEWARE
    # ========================================================================

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Inject a request ID into every request for log correlation."""
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

    @app.exception_handler(StepCacheError)
    async def step_cache_exception_handler(request: Request, exc: StepCacheError):
        logger.error(
            f"Cache service exception: {exc.message}",
            error_type=type(exc).__name__,
            request_id=exc.request_id,
        )
        return JSONResponse(
            status_code=500,
            content=exc.to_dict(),
            headers={HEADER_REQUEST_ID: exc.request_id or ""},
        )

    # ========================================================================
    # ROUTERS
    # ========================================================================
    # All endpoints are prefixed with API_BASE_PATH (default: /api)

    base_path = settings.app.API_BASE_PATH
    app.include_router(menus_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)
    app.include_router(system_router, prefix=base_path)
    app.include_router(debug_router, prefix=base_path)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
        }

    return app


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "stepcache.application.app:create_app",
        factory=True,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
