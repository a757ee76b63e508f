"""
Data Transfer Objects for catalog aggregates.

Hey future me - these are the results the service hands to callers (and the
things the cache stores). They're all FROZEN: a cached aggregate is shared by
every request until it expires, so nobody may mutate it in place. Collections
inside are tuples/frozensets for the same reason. The raw catalog records
(album/track dicts) are kept as read-only views (freeze_record) - we never parse
more of the catalog payload than the aggregates need.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Literal

BreakdownView = Literal["album", "artist"]


def freeze_record(value: Any) -> Any:
    """Read-only deep view of a JSON record: dicts become mappingproxies, lists tuples."""
    if isinstance(value, MappingProxyType):
        return value
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_record(item) for key, item in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze_record(item) for item in value)
    return value


def thaw_record(value: Any) -> Any:
    """Plain, mutable copy of a frozen record (for serialization)."""
    if isinstance(value, Mapping):
        return {key: thaw_record(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw_record(item) for item in value]
    return value


@dataclass(frozen=True)
class Credential:
    """Opaque bearer credential.

    The expiry is tracked by whoever obtained the token; the core never
    refreshes it and only checks whether a token is present at all.
    """

    access_token: str
    expires_at: datetime | None = None

    @property
    def is_present(self) -> bool:
        return bool(self.access_token and self.access_token.strip())

    # Never leak the token into logs via repr()
    def __repr__(self) -> str:
        return f"Credential(access_token=<redacted>, expires_at={self.expires_at!r})"


@dataclass(frozen=True)
class DurationAggregate:
    """Total playing time of a playlist."""

    total_duration_ms: int
    track_count: int
    duration_text: str


@dataclass(frozen=True)
class GenreShare:
    """One row of the genre table."""

    name: str
    count: int
    percentage: float


@dataclass(frozen=True)
class AlbumCompletion:
    """How much of an album is present in a playlist."""

    id: str
    name: str
    artist: str
    image: str | None
    total_tracks: int
    tracks_present: int
    percentage: int


@dataclass(frozen=True)
class ArtistTally:
    """Number of playlist tracks crediting an artist."""

    id: str
    name: str
    track_count: int


@dataclass(frozen=True)
class AlbumAggregate:
    """Album metadata plus its full track details.

    ``in_playlist`` holds the URIs of this album's tracks that occur in the
    playlist the album was opened from (empty when no playlist was given).
    """

    album: Mapping[str, Any]
    tracks: tuple[Mapping[str, Any], ...]
    total_duration_ms: int
    in_playlist: frozenset[str] = frozenset()

    # Hey future me - frozen=True only stops attribute assignment. The catalog records
    # inside are swapped for read-only views here, because this object sits in the cache
    # and every caller gets the SAME instance until it expires.
    def __post_init__(self) -> None:
        object.__setattr__(self, "album", freeze_record(self.album))
        object.__setattr__(self, "tracks", tuple(freeze_record(t) for t in self.tracks))

    @property
    def duration_text(self) -> str:
        from vinylstats.domain.value_objects.duration import format_duration

        return format_duration(self.total_duration_ms)


@dataclass(frozen=True)
class PlaylistStats:
    """Headline numbers shown above a playlist breakdown."""

    total_tracks: int
    total_duration_ms: int
    duration_text: str
    unique_albums: int
    unique_artists: int


@dataclass(frozen=True)
class PlaylistBreakdown:
    """Full (unpaged) album and artist breakdown of one playlist. This is what gets cached."""

    stats: PlaylistStats
    albums: tuple[AlbumCompletion, ...]
    artists: tuple[ArtistTally, ...]


@dataclass(frozen=True)
class BreakdownPage:
    """One page of a playlist breakdown in either view."""

    view: BreakdownView
    items: tuple[AlbumCompletion, ...] | tuple[ArtistTally, ...]
    page: int
    total_pages: int
    stats: PlaylistStats


@dataclass(frozen=True)
class PlaylistPage:
    """One page of the current user's playlists (raw playlist records)."""

    items: tuple[dict[str, Any], ...]
    page: int
    total_pages: int
    total: int


__all__ = [
    "AlbumAggregate",
    "AlbumCompletion",
    "ArtistTally",
    "BreakdownPage",
    "BreakdownView",
    "Credential",
    "DurationAggregate",
    "GenreShare",
    "PlaylistBreakdown",
    "PlaylistPage",
    "PlaylistStats",
    "freeze_record",
    "thaw_record",
]
