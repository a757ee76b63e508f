"""Dependency injection for API endpoints."""

import logging
from typing import cast

from fastapi import Depends, Header, HTTPException, Request

from vinylstats.application.cache import AggregateCache
from vinylstats.application.services import PlaylistStatsService
from vinylstats.config import Settings
from vinylstats.domain.dtos import Credential
from vinylstats.domain.exceptions import UnauthorizedError
from vinylstats.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)


# Hey future me, settings live on app.state (set by create_app) instead of calling get_settings()
# here - that way tests can build an app with their own Settings and every dependency sees the
# same object. get_settings() is only the fallback when create_app() got nothing.
def get_app_settings(request: Request) -> Settings:
    """Get settings the app was created with."""
    return cast(Settings, request.app.state.settings)


# Hey future me, NOW WE GET CLIENT AND CACHE FROM APP STATE! Both are created during app startup
# (see lifecycle.lifespan) and shared by every request - the cache is THE shared state of the
# app, one instance per process. If they're missing, startup didn't run (or failed) - 503.
def get_catalog_client(request: Request) -> ICatalogClient:
    """Get shared catalog client from app state.

    Raises:
        HTTPException: 503 if the client is not initialized
    """
    client = getattr(request.app.state, "catalog_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Catalog client not initialized")
    return cast(ICatalogClient, client)


def get_aggregate_cache(request: Request) -> AggregateCache:
    """Get shared aggregate cache from app state.

    Raises:
        HTTPException: 503 if the cache is not initialized
    """
    cache = getattr(request.app.state, "aggregate_cache", None)
    if cache is None:
        raise HTTPException(status_code=503, detail="Aggregate cache not initialized")
    return cast(AggregateCache, cache)


# Use this in endpoint params like: "service: PlaylistStatsService = Depends(get_stats_service)"
def get_stats_service(
    client: ICatalogClient = Depends(get_catalog_client),
    cache: AggregateCache = Depends(get_aggregate_cache),
    settings: Settings = Depends(get_app_settings),
) -> PlaylistStatsService:
    """Build the stats facade around the shared client and cache (cheap, no I/O)."""
    return PlaylistStatsService(client, cache, settings)


# Hey future me, this is a helper to parse Bearer tokens consistently! If the string starts
# with "bearer " (case-insensitive), strip it and return the rest; otherwise the whole string
# is the token. The token is passed to the catalog untouched - we never validate or refresh it.
def parse_bearer_token(authorization: str) -> str:
    """Parse Authorization header to extract the access token.

    Handles both "Bearer {token}" and raw token formats.
    Bearer prefix is case-insensitive.

    Args:
        authorization: Authorization header value

    Returns:
        Token with Bearer prefix removed (if present)
    """
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return authorization.strip()


async def get_credential(authorization: str | None = Header(None)) -> Credential:
    """Build the catalog credential from the Authorization header.

    Raises:
        UnauthorizedError: Header missing or blank (mapped to 401 + reauthenticate)
    """
    token = parse_bearer_token(authorization) if authorization else ""
    if not token:
        raise UnauthorizedError("Missing bearer token")
    return Credential(access_token=token)
