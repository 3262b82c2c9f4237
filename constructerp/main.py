"""ConstructERP — FastAPI Application Factory."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from constructerp.attendance.cleanup import run_cleanup_loop
from constructerp.attendance.router import router as attendance_router
from constructerp.auth.router import router as auth_router
from constructerp.common.exceptions import register_exception_handlers
from constructerp.common.rate_limit import limiter
from constructerp.config import settings
from constructerp.dashboard.router import router as dashboard_router

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    # Startup
    cleanup_task = None
    if settings.CLEANUP_ENABLED:
        cleanup_task = asyncio.create_task(run_cleanup_loop(settings.CLEANUP_INTERVAL_HOURS))
        logger.info(
            "Attendance cleanup scheduled every %dh (keeping %d days)",
            settings.CLEANUP_INTERVAL_HOURS,
            settings.RETENTION_DAYS,
        )
    yield
    # Shutdown
    if cleanup_task is not None:
        cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup_task


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="ConstructERP",
        description="Construction site attendance: foreman submit → incharge review → admin approve",
        version=VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers ({success: false, message} envelope)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=settings.CORS_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/health", tags=["system"])
    async def health_check():
        return {
            "success": True,
            "data": {
                "status": "healthy",
                "version": VERSION,
                "environment": settings.ENVIRONMENT,
            },
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(attendance_router, prefix="/api/attendance", tags=["attendance"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])

    return app


app = create_app()
