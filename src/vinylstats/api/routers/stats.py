"""Playlist and album statistics endpoints."""

# Hey future me - these endpoints are THIN. Everything interesting (validation, cache,
# pagination, batching) lives in PlaylistStatsService; the routes only pull the credential
# out of the Authorization header and convert DTOs to response models. Domain exceptions
# bubble up to exception_handlers.py - don't catch them here!
#
# ?page= is taken as a raw string on purpose: "abc" or "-3" must become page 1 instead of a
# 422, which is what normalize_page_number does inside the service.

import logging

from fastapi import APIRouter, Depends, Query

from vinylstats.api.dependencies import get_credential, get_stats_service
from vinylstats.api.schemas import (
    AlbumResponse,
    BreakdownResponse,
    DurationResponse,
    GenreShareDTO,
    GenresResponse,
    PlaylistsResponse,
)
from vinylstats.application.services import PlaylistStatsService
from vinylstats.domain.dtos import Credential

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/playlists", response_model=PlaylistsResponse)
async def list_playlists(
    page: str | None = Query(None, description="Page number (1-based)"),
    credential: Credential = Depends(get_credential),
    service: PlaylistStatsService = Depends(get_stats_service),
) -> PlaylistsResponse:
    """List the current user's playlists, one page at a time."""
    result = await service.get_user_playlists_page(credential, page)
    return PlaylistsResponse.from_entity(result)


@router.get("/playlists/{playlist_id}/duration", response_model=DurationResponse)
async def get_playlist_duration(
    playlist_id: str,
    credential: Credential = Depends(get_credential),
    service: PlaylistStatsService = Depends(get_stats_service),
) -> DurationResponse:
    """Total duration of a playlist."""
    aggregate = await service.get_playlist_duration_aggregate(playlist_id, credential)
    return DurationResponse.from_entity(playlist_id, aggregate)


@router.get("/playlists/{playlist_id}/genres", response_model=GenresResponse)
async def get_playlist_genres(
    playlist_id: str,
    credential: Credential = Depends(get_credential),
    service: PlaylistStatsService = Depends(get_stats_service),
) -> GenresResponse:
    """Top genres of a playlist."""
    genres = await service.get_playlist_genre_aggregate(playlist_id, credential)
    return GenresResponse(
        playlist_id=playlist_id,
        genres=[GenreShareDTO.from_entity(share) for share in genres],
    )


@router.get("/playlists/{playlist_id}/breakdown", response_model=BreakdownResponse)
async def get_playlist_breakdown(
    playlist_id: str,
    view: str = Query("album", description="'album' (completion) or 'artist' (ranking)"),
    page: str | None = Query(None, description="Page number (1-based)"),
    credential: Credential = Depends(get_credential),
    service: PlaylistStatsService = Depends(get_stats_service),
) -> BreakdownResponse:
    """Album completion or artist ranking of a playlist, paged."""
    result = await service.get_playlist_breakdown(playlist_id, credential, view=view, page=page)
    return BreakdownResponse.from_entity(playlist_id, result)


@router.get("/albums/{album_id}", response_model=AlbumResponse)
async def get_album(
    album_id: str,
    playlist_id: str | None = Query(
        None, description="Mark which album tracks are in this playlist"
    ),
    credential: Credential = Depends(get_credential),
    service: PlaylistStatsService = Depends(get_stats_service),
) -> AlbumResponse:
    """Album detail with full track records."""
    aggregate = await service.get_album_aggregate(album_id, credential, playlist_id=playlist_id)
    return AlbumResponse.from_entity(aggregate)
