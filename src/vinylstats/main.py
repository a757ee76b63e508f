"""FastAPI application factory.

Run with ``uvicorn vinylstats.main:app`` (or ``python -m vinylstats.main``).
"""

import logging

from fastapi import FastAPI

from vinylstats import __version__
from vinylstats.api.exception_handlers import register_exception_handlers
from vinylstats.api.routers import api_router, health
from vinylstats.application.cache import AggregateCache
from vinylstats.config import Settings, get_settings
from vinylstats.domain.ports import ICatalogClient
from vinylstats.infrastructure.integrations import CatalogClient
from vinylstats.infrastructure.lifecycle import lifespan
from vinylstats.infrastructure.observability import RequestLoggingMiddleware
from vinylstats.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


# Hey future me - the app OWNS one catalog client and one aggregate cache (app.state). No
# module-level globals: two apps in one test run get two independent caches. Pass
# catalog_client to swap in a fake - then no rate limiter or httpx pool is built at all.
def create_app(
    settings: Settings | None = None,
    catalog_client: ICatalogClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: App settings (process-wide get_settings() when None)
        catalog_client: Client override, mainly for tests

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="vinylstats",
        version=__version__,
        description="Playlist duration, genre and album-completion statistics",
        lifespan=lifespan,
    )

    if catalog_client is None:
        rate_limiter = (
            RateLimiter.from_settings(settings.catalog)
            if settings.catalog.rate_limit_enabled
            else None
        )
        catalog_client = CatalogClient(settings.catalog, rate_limiter=rate_limiter)

    app.state.settings = settings
    app.state.catalog_client = catalog_client
    app.state.aggregate_cache = AggregateCache(
        ttl_seconds=settings.cache.ttl_seconds,
        coalesce=settings.cache.coalesce_in_flight,
    )

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("vinylstats.main:app", host="0.0.0.0", port=8000)
