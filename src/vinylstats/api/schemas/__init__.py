"""Pydantic request/response models for the HTTP API."""

from vinylstats.api.schemas.stats import (
    AlbumCompletionDTO,
    AlbumResponse,
    ArtistTallyDTO,
    BreakdownResponse,
    DurationResponse,
    GenreShareDTO,
    GenresResponse,
    HealthResponse,
    PlaylistsResponse,
    PlaylistStatsDTO,
)

__all__ = [
    "AlbumCompletionDTO",
    "AlbumResponse",
    "ArtistTallyDTO",
    "BreakdownResponse",
    "DurationResponse",
    "GenreShareDTO",
    "GenresResponse",
    "HealthResponse",
    "PlaylistStatsDTO",
    "PlaylistsResponse",
]
