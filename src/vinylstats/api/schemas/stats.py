"""API schemas for playlist and album statistics."""

from typing import Any

from pydantic import BaseModel, Field

from vinylstats.domain.dtos import (
    AlbumAggregate,
    AlbumCompletion,
    ArtistTally,
    BreakdownPage,
    DurationAggregate,
    GenreShare,
    PlaylistPage,
    PlaylistStats,
    thaw_record,
)


class DurationResponse(BaseModel):
    """Total playing time of a playlist."""

    playlist_id: str
    total_duration_ms: int = Field(..., ge=0, description="Sum of track durations")
    track_count: int = Field(..., ge=0, description="Tracks counted")
    duration_text: str = Field(..., description="Human readable, e.g. '1h 1m'")

    @classmethod
    def from_entity(cls, playlist_id: str, aggregate: DurationAggregate) -> "DurationResponse":
        """Convert domain aggregate to response."""
        return cls(
            playlist_id=playlist_id,
            total_duration_ms=aggregate.total_duration_ms,
            track_count=aggregate.track_count,
            duration_text=aggregate.duration_text,
        )


class GenreShareDTO(BaseModel):
    """One genre row."""

    name: str
    count: int
    percentage: float = Field(..., description="Share of all genre occurrences, unrounded")

    @classmethod
    def from_entity(cls, share: GenreShare) -> "GenreShareDTO":
        return cls(name=share.name, count=share.count, percentage=share.percentage)


class GenresResponse(BaseModel):
    """Top genres of a playlist."""

    playlist_id: str
    genres: list[GenreShareDTO]


class PlaylistStatsDTO(BaseModel):
    """Headline numbers of a playlist."""

    total_tracks: int
    total_duration_ms: int
    duration_text: str
    unique_albums: int
    unique_artists: int

    @classmethod
    def from_entity(cls, stats: PlaylistStats) -> "PlaylistStatsDTO":
        return cls(
            total_tracks=stats.total_tracks,
            total_duration_ms=stats.total_duration_ms,
            duration_text=stats.duration_text,
            unique_albums=stats.unique_albums,
            unique_artists=stats.unique_artists,
        )


class AlbumCompletionDTO(BaseModel):
    """Album completion row."""

    id: str
    name: str
    artist: str
    image: str | None = None
    total_tracks: int
    tracks_present: int
    percentage: int = Field(..., ge=0, description="Rounded completion percentage")

    @classmethod
    def from_entity(cls, row: AlbumCompletion) -> "AlbumCompletionDTO":
        return cls(
            id=row.id,
            name=row.name,
            artist=row.artist,
            image=row.image,
            total_tracks=row.total_tracks,
            tracks_present=row.tracks_present,
            percentage=row.percentage,
        )


class ArtistTallyDTO(BaseModel):
    """Artist ranking row."""

    id: str
    name: str
    track_count: int

    @classmethod
    def from_entity(cls, row: ArtistTally) -> "ArtistTallyDTO":
        return cls(id=row.id, name=row.name, track_count=row.track_count)


class BreakdownResponse(BaseModel):
    """One page of a playlist breakdown."""

    playlist_id: str
    view: str = Field(..., description="'album' or 'artist'")
    page: int
    total_pages: int
    stats: PlaylistStatsDTO
    albums: list[AlbumCompletionDTO] = Field(default_factory=list)
    artists: list[ArtistTallyDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, playlist_id: str, page: BreakdownPage) -> "BreakdownResponse":
        """Convert a breakdown page; only the list matching the view is filled."""
        rows: dict[str, Any] = {}
        if page.view == "artist":
            rows["artists"] = [
                ArtistTallyDTO.from_entity(row) for row in page.items if isinstance(row, ArtistTally)
            ]
        else:
            rows["albums"] = [
                AlbumCompletionDTO.from_entity(row)
                for row in page.items
                if isinstance(row, AlbumCompletion)
            ]
        return cls(
            playlist_id=playlist_id,
            view=page.view,
            page=page.page,
            total_pages=page.total_pages,
            stats=PlaylistStatsDTO.from_entity(page.stats),
            **rows,
        )


class AlbumResponse(BaseModel):
    """Album detail with full track records."""

    album: dict[str, Any] = Field(..., description="Raw catalog album record")
    tracks: list[dict[str, Any]] = Field(..., description="Raw catalog track records")
    total_duration_ms: int
    duration_text: str
    in_playlist: list[str] = Field(
        default_factory=list,
        description="URIs of album tracks present in the given playlist",
    )

    @classmethod
    def from_entity(cls, aggregate: AlbumAggregate) -> "AlbumResponse":
        return cls(
            album=thaw_record(aggregate.album),
            tracks=[thaw_record(track) for track in aggregate.tracks],
            total_duration_ms=aggregate.total_duration_ms,
            duration_text=aggregate.duration_text,
            in_playlist=sorted(aggregate.in_playlist),
        )


class PlaylistsResponse(BaseModel):
    """One page of the user's playlists."""

    items: list[dict[str, Any]]
    page: int
    total_pages: int
    total: int

    @classmethod
    def from_entity(cls, page: PlaylistPage) -> "PlaylistsResponse":
        return cls(
            items=list(page.items),
            page=page.page,
            total_pages=page.total_pages,
            total=page.total,
        )


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(description="Always 'healthy' when the process answers")
    version: str
    cache: dict[str, Any] = Field(default_factory=dict, description="Aggregate cache stats")
