"""Application lifecycle management for startup and shutdown tasks."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vinylstats.config import Settings
from vinylstats.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


# Listen future me, @asynccontextmanager makes this a CONTEXT MANAGER for FastAPI lifespan!
# Everything before `yield` runs at STARTUP, everything after runs at SHUTDOWN. The client and
# cache are already on app.state (create_app builds them, so TestClient without `with` works
# too) - startup only configures logging, shutdown closes the HTTP connection pool. The
# try/finally makes sure the pool is released even if something blows up in between.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks including:
    - Logging configuration
    - Catalog client cleanup
    """
    settings: Settings = app.state.settings

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.log_json,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    try:
        yield
    finally:
        logger.info("Shutting down application")
        client = getattr(app.state, "catalog_client", None)
        if client is not None and hasattr(client, "close"):
            await client.close()
            logger.info("Catalog client closed")
        cache = getattr(app.state, "aggregate_cache", None)
        if cache is not None:
            await cache.clear()
