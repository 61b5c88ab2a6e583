"""
FastAPI Application Entry Point

Creates and configures the application:

1. Application factory: create_app() returns a configured app, so tests
   can build their own instances.
2. Lifespan: connects Redis, starts the background jobs (view-count flush,
   ranking refresh) when SCHEDULER_ENABLED, and stops them on shutdown.
3. Middleware: slowapi rate limiting and CORS.
4. Exception handlers: service errors (reviewhub.exceptions) map to their
   HTTP status; request validation errors are 400; database and
   unexpected errors are 500.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from reviewhub.config import get_settings
from reviewhub.database import SessionLocal
from reviewhub.exceptions import AppError
from reviewhub.routers import auth_router, comments_router, reviews_router, users_router
from reviewhub.services.cache import close_redis_connection, get_cache_stats, get_redis_client
from reviewhub.services.rate_limiter import limiter, rate_limit_exceeded_handler
from reviewhub.services.scheduler import build_scheduler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Code before yield runs on startup, code after yield on shutdown.
    """
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")

    if get_redis_client():
        logger.info("Redis connected - view counting and rankings enabled")
    else:
        logger.warning("Redis unavailable - views are written directly, rankings are empty")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(settings, SessionLocal)
        scheduler.start()
        logger.info(f"Background jobs started: {', '.join(job.name for job in scheduler.jobs)}")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    if scheduler is not None:
        await scheduler.stop()
    close_redis_connection()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Review Feed API

Social review platform backend.

### Features
- **Reviews**: CRUD with tags and images, view counting
- **Feeds**: all, following, search, bookmarked, commented, liked, hot and cold
- **Reactions**: likes, dislikes, bookmarks
- **Comments**: replies and account tags
- **Social**: follows, blocks, notifications

### Authentication
Bearer access tokens from `/api/v1/auth/login` or Naver/Kakao sign-in.
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Map service errors to their HTTP status with {"detail": message}."""
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """Log the database error; hide its details from clients."""
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "A database error occurred. Please try again later."},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all; details only in debug mode."""
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(status_code=500, content={"detail": str(exc)})

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    # prefix="/api/v1" creates versioned URLs: /api/v1/reviews, /api/v1/users
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(comments_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and healthy.",
    )
    async def health_check() -> dict:
        """Used by load balancers, container probes and monitoring."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.api_version,
            "cache": get_cache_stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
            "scheduler": {
                "enabled": settings.scheduler_enabled,
                "view_count_flush_interval_seconds": settings.view_count_flush_interval_seconds,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# uvicorn imports this: uvicorn reviewhub.main:app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "reviewhub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
