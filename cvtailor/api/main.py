"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, cvtailor.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cvtailor.api.deps.dependencies import get_service_cache
from cvtailor.boundary.db.connection import create_tables, get_async_engine
from cvtailor.configs import Settings, get_settings
from cvtailor.observability.logger import configure_logging
from cvtailor.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware
from cvtailor.workers.dispatcher import InProcessJobDispatcher
from .routers import analyses_router, cache_router, health_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events. In in-process mode the stuck-job
    sweeper runs as a background task; in Celery mode beat schedules it.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = logging.getLogger("uvicorn")
    logger.info(f"Starting CV Tailor API ({settings.environment})")

    # Startup
    if settings.database.auto_create_tables:
        await create_tables()
        logger.info("Database tables ensured")

    logger.info("Pre-warming service cache...")
    cache = get_service_cache()
    _ = cache.result_cache
    _ = cache.dispatcher
    logger.info(f"Service cache pre-warmed ({settings.pipeline.dispatcher_backend} dispatcher)")

    sweep_task = None
    if settings.pipeline.dispatcher_backend == "inprocess":
        sweep_task = asyncio.create_task(
            cache.sweeper.run_forever(settings.pipeline.sweep_interval_seconds)
        )

    yield

    # Shutdown
    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task
    if isinstance(cache.dispatcher, InProcessJobDispatcher):
        logger.info(f"Draining {cache.dispatcher.pending_tasks} in-process jobs")
        await cache.dispatcher.drain()
    cache.clear()
    await get_async_engine().dispose()
    logger.info("Service cache cleared")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        settings: Application settings, defaults to get_settings()

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="CV Tailor API",
        description="Asynchronous CV tailoring against job descriptions",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(analyses_router, prefix="/api/v1")
    app.include_router(cache_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "cvtailor.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
