"""Playlist Stats Service - cached aggregates over catalog playlists and albums.

Hey future me - this is the facade the HTTP layer (or anything else) talks to. Every public
method follows the same recipe:

1. Validate IDs + credential BEFORE touching cache or network
2. Ask the AggregateCache for "<kind>:<id>"
3. On miss: paginate (collect_all), bulk-resolve if needed (BatchResolver), run the pure
   aggregation functions from domain/value_objects, store, return

No I/O happens inside the aggregation functions and no aggregation happens in here beyond
wiring. Failures propagate with their ErrorKind untouched and are never cached.
"""

import asyncio
import dataclasses
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import quote, urlencode

from vinylstats.application.cache import AggregateCache
from vinylstats.application.services.batch_resolver import BatchResolver
from vinylstats.application.services.deadline import Deadline
from vinylstats.application.services.pagination import collect_all, playlist_track
from vinylstats.config import Settings
from vinylstats.domain.dtos import (
    AlbumAggregate,
    BreakdownPage,
    BreakdownView,
    Credential,
    DurationAggregate,
    GenreShare,
    PlaylistBreakdown,
    PlaylistPage,
    PlaylistStats,
)
from vinylstats.domain.exceptions import MalformedResponseError, UnauthorizedError
from vinylstats.domain.ports import ICatalogClient
from vinylstats.domain.value_objects import (
    collect_artist_ids,
    compute_album_completion,
    compute_artist_ranking,
    compute_genre_table,
    count_unique_artists,
    format_duration,
    normalize_page_number,
    page_slice,
    require_entity_id,
    top_genres,
    total_duration_ms,
    total_pages,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _uri_of(item: Any) -> str | None:
    track = playlist_track(item)
    return track.get("uri") if track else None


class PlaylistStatsService:
    """Computes and caches playlist/album aggregates."""

    def __init__(
        self,
        client: ICatalogClient,
        cache: AggregateCache,
        settings: Settings | None = None,
    ) -> None:
        """Initialize stats service.

        Args:
            client: Catalog client (real or fake)
            cache: Shared aggregate cache
            settings: App settings (defaults when None)
        """
        self._client = client
        self._cache = cache
        self._settings = settings or Settings()
        catalog = self._settings.catalog
        self._resolver = BatchResolver(
            client,
            chunk_size=catalog.batch_size,
            chunk_delay=catalog.batch_delay_seconds,
            max_concurrency=catalog.batch_concurrency,
            skip_malformed=catalog.skip_malformed_batches,
        )

    # =========================================================================
    # PLUMBING
    # =========================================================================

    @staticmethod
    def _require_credential(credential: Credential | None) -> Credential:
        if credential is None or not credential.is_present:
            raise UnauthorizedError("No catalog credential available")
        return credential

    def _new_deadline(self) -> Deadline | None:
        seconds = self._settings.stats.aggregate_deadline_seconds
        return Deadline.after(seconds) if seconds is not None else None

    @property
    def _timeout(self) -> float:
        return self._settings.catalog.request_timeout_seconds

    async def _cached(
        self,
        kind: Any,
        entity_id: str,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        async def timed() -> T:
            started = time.perf_counter()
            value = await compute()
            logger.info(
                f"Computed {kind} aggregate for {entity_id} in "
                f"{(time.perf_counter() - started) * 1000:.0f}ms"
            )
            return value

        return await self._cache.get_or_compute(
            kind, entity_id, timed, coalesce=self._settings.cache.coalesce_in_flight
        )

    def _playlist_tracks_cursor(self, playlist_id: str, fields: str | None = None) -> str:
        query: dict[str, Any] = {"limit": self._settings.catalog.page_size}
        if fields:
            query["fields"] = fields
        return f"playlists/{quote(playlist_id, safe='')}/tracks?{urlencode(query)}"

    async def _collect_playlist_tracks(
        self,
        playlist_id: str,
        credential: Credential,
        deadline: Deadline | None,
        fields: str | None = None,
    ) -> list[dict[str, Any]]:
        return await collect_all(
            self._client,
            self._playlist_tracks_cursor(playlist_id, fields),
            credential,
            extract=playlist_track,
            page_delay=self._settings.catalog.page_delay_seconds,
            deadline=deadline,
            timeout=self._timeout,
        )

    # =========================================================================
    # DURATION
    # =========================================================================

    async def get_playlist_duration_aggregate(
        self, playlist_id: str, credential: Credential
    ) -> DurationAggregate:
        """Total duration and track count of a playlist.

        Raises:
            ValidationError: Invalid playlist ID
            CatalogError: Any catalog failure
        """
        require_entity_id(playlist_id, "playlist")
        credential = self._require_credential(credential)

        async def compute() -> DurationAggregate:
            tracks = await self._collect_playlist_tracks(
                playlist_id,
                credential,
                self._new_deadline(),
                fields="items(track(duration_ms)),next",
            )
            total = total_duration_ms(tracks)
            return DurationAggregate(
                total_duration_ms=total,
                track_count=len(tracks),
                duration_text=format_duration(total),
            )

        return await self._cached("duration", playlist_id, compute)

    # =========================================================================
    # GENRES
    # =========================================================================

    async def get_playlist_genre_aggregate(
        self, playlist_id: str, credential: Credential
    ) -> tuple[GenreShare, ...]:
        """Top genres of a playlist, by (track, artist, genre) occurrences."""
        require_entity_id(playlist_id, "playlist")
        credential = self._require_credential(credential)

        async def compute() -> tuple[GenreShare, ...]:
            deadline = self._new_deadline()
            tracks = await self._collect_playlist_tracks(playlist_id, credential, deadline)
            artists = await self._resolver.resolve(
                collect_artist_ids(tracks),
                credential,
                endpoint="artists",
                response_key="artists",
                deadline=deadline,
                timeout=self._timeout,
            )
            artist_genres = {
                artist_id: [g for g in artist.get("genres") or [] if isinstance(g, str)]
                for artist_id, artist in artists.items()
            }
            table = compute_genre_table(tracks, artist_genres)
            return top_genres(table, self._settings.stats.top_genres)

        return await self._cached("genres", playlist_id, compute)

    # =========================================================================
    # ALBUM / ARTIST BREAKDOWN
    # =========================================================================

    async def _get_breakdown(self, playlist_id: str, credential: Credential) -> PlaylistBreakdown:
        async def compute() -> PlaylistBreakdown:
            tracks = await self._collect_playlist_tracks(
                playlist_id, credential, self._new_deadline()
            )
            stats_settings = self._settings.stats
            albums = compute_album_completion(tracks, exclude_singles=stats_settings.exclude_singles)
            artists = compute_artist_ranking(tracks, max_artists=stats_settings.max_artists)
            total_ms = total_duration_ms(tracks)
            return PlaylistBreakdown(
                stats=PlaylistStats(
                    total_tracks=len(tracks),
                    total_duration_ms=total_ms,
                    duration_text=format_duration(total_ms),
                    unique_albums=len(albums),
                    unique_artists=count_unique_artists(tracks),
                ),
                albums=tuple(albums),
                artists=tuple(artists),
            )

        return await self._cached("breakdown", playlist_id, compute)

    async def get_playlist_breakdown(
        self,
        playlist_id: str,
        credential: Credential,
        view: BreakdownView | str = "album",
        page: Any = 1,
    ) -> BreakdownPage:
        """One page of the album-completion or artist view of a playlist.

        Anything other than ``"artist"`` means the album view. Page numbers are
        normalised and clamped to the last page. The full breakdown is cached
        once per playlist; paging is done on the cached result.
        """
        require_entity_id(playlist_id, "playlist")
        credential = self._require_credential(credential)

        breakdown = await self._get_breakdown(playlist_id, credential)
        if view == "artist":
            items, current, pages = page_slice(
                breakdown.artists, page, self._settings.stats.artists_per_page
            )
            return BreakdownPage("artist", items, current, pages, breakdown.stats)

        items, current, pages = page_slice(
            breakdown.albums, page, self._settings.stats.albums_per_page
        )
        return BreakdownPage("album", items, current, pages, breakdown.stats)

    # =========================================================================
    # ALBUM DETAIL
    # =========================================================================

    async def _album_tracks(
        self, album_id: str, credential: Credential, deadline: Deadline | None
    ) -> tuple[dict[str, Any], ...]:
        simplified = await collect_all(
            self._client,
            f"albums/{quote(album_id, safe='')}/tracks?limit={self._settings.catalog.page_size}",
            credential,
            page_delay=self._settings.catalog.page_delay_seconds,
            deadline=deadline,
            timeout=self._timeout,
        )
        details = await self._resolver.resolve(
            (track.get("id") for track in simplified),
            credential,
            endpoint="tracks",
            response_key="tracks",
            deadline=deadline,
            timeout=self._timeout,
        )
        # Full track objects (popularity etc.) where resolvable, simplified ones otherwise
        return tuple(details.get(track.get("id") or "", track) for track in simplified)

    async def _get_album(self, album_id: str, credential: Credential) -> AlbumAggregate:
        async def compute() -> AlbumAggregate:
            deadline = self._new_deadline()
            # Hey future me - album metadata and the track list are independent reads, so
            # they go out together and we join before building the result. If either one
            # fails the other is cancelled and awaited: no track pages or bulk lookups keep
            # burning rate limit tokens for an aggregate that already failed.
            album_task = asyncio.create_task(
                self._client.request(
                    f"albums/{quote(album_id, safe='')}",
                    credential,
                    deadline.clamp(self._timeout) if deadline else self._timeout,
                )
            )
            tracks_task = asyncio.create_task(self._album_tracks(album_id, credential, deadline))
            try:
                album, tracks = await asyncio.gather(album_task, tracks_task)
            except Exception:
                for task in (album_task, tracks_task):
                    task.cancel()
                await asyncio.gather(album_task, tracks_task, return_exceptions=True)
                raise
            return AlbumAggregate(
                album=album,
                tracks=tracks,
                total_duration_ms=total_duration_ms(tracks),
            )

        return await self._cached("album", album_id, compute)

    async def _get_playlist_uris(self, playlist_id: str, credential: Credential) -> frozenset[str]:
        async def compute() -> frozenset[str]:
            items = await collect_all(
                self._client,
                self._playlist_tracks_cursor(playlist_id, "items(track(uri)),next"),
                credential,
                extract=_uri_of,
                page_delay=self._settings.catalog.page_delay_seconds,
                deadline=self._new_deadline(),
                timeout=self._timeout,
            )
            return frozenset(items)

        return await self._cached("playlist-uris", playlist_id, compute)

    async def get_album_aggregate(
        self,
        album_id: str,
        credential: Credential,
        playlist_id: str | None = None,
    ) -> AlbumAggregate:
        """Album metadata, full track details and total duration.

        When ``playlist_id`` is given, ``in_playlist`` lists the album track
        URIs that also occur in that playlist.
        """
        require_entity_id(album_id, "album")
        if playlist_id is not None:
            require_entity_id(playlist_id, "playlist")
        credential = self._require_credential(credential)

        aggregate = await self._get_album(album_id, credential)
        if playlist_id is None:
            return aggregate

        playlist_uris = await self._get_playlist_uris(playlist_id, credential)
        album_uris = {track["uri"] for track in aggregate.tracks if track.get("uri")}
        return dataclasses.replace(aggregate, in_playlist=frozenset(album_uris & playlist_uris))

    # =========================================================================
    # USER PLAYLISTS
    # =========================================================================

    async def get_user_playlists_page(self, credential: Credential, page: Any = 1) -> PlaylistPage:
        """One page of the current user's playlists (not cached - per-user data)."""
        credential = self._require_credential(credential)
        per_page = self._settings.stats.playlists_per_page
        current = normalize_page_number(page)

        payload = await self._client.request(
            "me/playlists",
            credential,
            self._timeout,
            params={"limit": per_page, "offset": (current - 1) * per_page},
        )
        items = payload.get("items")
        total = payload.get("total", 0)
        if not isinstance(items, list) or isinstance(total, bool) or not isinstance(total, int):
            raise MalformedResponseError("Playlist listing has no 'items' list or 'total' count")

        return PlaylistPage(
            items=tuple(item for item in items if isinstance(item, dict)),
            page=current,
            total_pages=total_pages(total, per_page),
            total=total,
        )


__all__ = ["PlaylistStatsService"]
