"""API router initialization."""

# Hey future me, this is the MAIN API router aggregator! It gets mounted under /api in
# main.py, so stats endpoints become /api/playlists/..., /api/albums/... The health router
# is NOT part of it - /health sits at the root where probes expect it.

from fastapi import APIRouter

from vinylstats.api.routers import health, stats

api_router = APIRouter()

api_router.include_router(stats.router, tags=["Stats"])

__all__ = ["api_router", "health", "stats"]
