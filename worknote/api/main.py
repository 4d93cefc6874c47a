"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers, starts the retry sweeper
and configures uvicorn server.

Dependencies: fastapi, worknote.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worknote.api.deps.dependencies import get_service_cache
from worknote.boundary.db import create_tables, dispose_engine
from worknote.configs import get_settings
from worknote.observability import configure_logging
from worknote.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware
from .routers import admin_router, health_router, search_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = logging.getLogger("uvicorn")

    # Startup
    if settings.database.is_sqlite:
        await create_tables()
        logger.info("SQLite schema ensured")

    logger.info("Pre-warming service cache...")
    cache = get_service_cache()
    # Trigger property access to load instances
    _ = cache.chunker
    _ = cache.embedding_provider
    _ = cache.vector_index
    logger.info("Service cache pre-warmed")

    if settings.retry_queue.sweeper_enabled:
        cache.sweeper.start()

    yield

    # Shutdown
    if settings.retry_queue.sweeper_enabled:
        await cache.sweeper.stop()
    await dispose_engine()
    cache.clear()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Work Note Knowledge Base API",
        description="Hybrid search and embedding administration for work notes",
        version="0.1.0",
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
    app.include_router(search_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "worknote.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
