"""Tests for the playlist stats facade."""

import asyncio
from typing import Any

import pytest
from fakes import FakeCatalogClient, make_album, make_pages, make_track

from vinylstats.application.cache import AggregateCache
from vinylstats.application.services import PlaylistStatsService
from vinylstats.config import Settings
from vinylstats.domain.dtos import Credential
from vinylstats.domain.exceptions import (
    EntityNotFoundError,
    MalformedResponseError,
    TransientCatalogError,
    UnauthorizedError,
    ValidationError,
)


def _add_playlist(client: FakeCatalogClient, playlist_id: str, pages: list[list[Any]]) -> None:
    envelopes = [[{"track": track} for track in page] for page in pages]
    for cursor, payload in make_pages(f"playlists/{playlist_id}/tracks", envelopes).items():
        client.add(cursor, payload)


@pytest.fixture
def service(
    fake_client: FakeCatalogClient, aggregate_cache: AggregateCache, settings: Settings
) -> PlaylistStatsService:
    """Service wired to the fake client."""
    return PlaylistStatsService(fake_client, aggregate_cache, settings)


class TestValidation:
    """Test input checks that happen before any I/O."""

    async def test_invalid_playlist_id(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test a bad ID is rejected without a request."""
        with pytest.raises(ValidationError):
            await service.get_playlist_duration_aggregate("<script>", credential)
        assert fake_client.calls == []

    async def test_invalid_playlist_id_on_album(
        self, service: PlaylistStatsService, credential: Credential
    ) -> None:
        """Test the optional playlist ID is validated too."""
        with pytest.raises(ValidationError):
            await service.get_album_aggregate("al1", credential, playlist_id="x" * 101)

    async def test_missing_credential(
        self, service: PlaylistStatsService, fake_client: FakeCatalogClient
    ) -> None:
        """Test a blank token is Unauthorized before any request."""
        with pytest.raises(UnauthorizedError):
            await service.get_playlist_genre_aggregate("pl1", Credential(access_token=" "))
        assert fake_client.calls == []


class TestDurationAggregate:
    """Test playlist duration."""

    async def test_sums_over_all_pages(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test durations from every page are summed."""
        _add_playlist(
            fake_client,
            "pl1",
            [
                [make_track("t1", 1_800_000), make_track("t2", 1_800_000)],
                [make_track("t3", 61_000)],
            ],
        )

        result = await service.get_playlist_duration_aggregate("pl1", credential)

        assert result.total_duration_ms == 3_661_000
        assert result.track_count == 3
        assert result.duration_text == "1h 1m"
        assert "fields=" in fake_client.calls[0].endpoint

    async def test_second_call_served_from_cache(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test the aggregate is computed once within the TTL."""
        _add_playlist(fake_client, "pl1", [[make_track("t1")]])

        first = await service.get_playlist_duration_aggregate("pl1", credential)
        second = await service.get_playlist_duration_aggregate("pl1", credential)

        assert first == second
        assert len(fake_client.calls) == 1

    async def test_failure_not_cached(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test a failed computation is retried on the next call."""
        fake_client.add("playlists/pl1/tracks", TransientCatalogError("down"))
        with pytest.raises(TransientCatalogError):
            await service.get_playlist_duration_aggregate("pl1", credential)

        _add_playlist(fake_client, "pl1", [[make_track("t1", 45_000)]])
        result = await service.get_playlist_duration_aggregate("pl1", credential)

        assert result.duration_text == "45s"

    async def test_empty_playlist(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test an empty playlist is 0m."""
        _add_playlist(fake_client, "pl1", [[]])
        result = await service.get_playlist_duration_aggregate("pl1", credential)
        assert (result.total_duration_ms, result.track_count, result.duration_text) == (0, 0, "0m")


class TestGenreAggregate:
    """Test playlist genres."""

    async def test_top_genres(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test genres are resolved through the artist batch endpoint."""
        _add_playlist(
            fake_client,
            "pl1",
            [
                [
                    make_track("t1", artists=[("a", "A")]),
                    make_track("t2", artists=[("a", "A"), ("b", "B")]),
                ],
                [make_track("t3", artists=[("c", "C")])],
            ],
        )
        fake_client.add_records(
            "artists",
            {
                "a": {"id": "a", "genres": ["rock", "indie"]},
                "b": {"id": "b", "genres": ["jazz"]},
            },
        )

        genres = await service.get_playlist_genre_aggregate("pl1", credential)

        assert [(g.name, g.count) for g in genres] == [("rock", 2), ("indie", 2), ("jazz", 1)]
        assert genres[0].percentage == 40.0
        assert len(fake_client.calls_to("artists")) == 1

    async def test_truncated_to_configured_top(
        self,
        fake_client: FakeCatalogClient,
        aggregate_cache: AggregateCache,
        settings: Settings,
        credential: Credential,
    ) -> None:
        """Test the top-N limit comes from settings."""
        settings.stats.top_genres = 2
        service = PlaylistStatsService(fake_client, aggregate_cache, settings)
        _add_playlist(fake_client, "pl1", [[make_track("t1", artists=[("a", "A")])]])
        fake_client.add_records("artists", {"a": {"id": "a", "genres": ["x", "y", "z"]}})

        genres = await service.get_playlist_genre_aggregate("pl1", credential)

        assert [g.name for g in genres] == ["x", "y"]


class TestBreakdown:
    """Test album completion and artist views."""

    @pytest.fixture
    def playlist(self, fake_client: FakeCatalogClient) -> None:
        """Playlist with 14 distinct albums and one single."""
        tracks = [
            make_track(
                f"t{i}",
                60_000,
                artists=[(f"ar{i % 3}", f"Artist {i % 3}")],
                album=make_album(f"al{i}", f"Album {i:02d}", 10),
            )
            for i in range(14)
        ]
        tracks.append(make_track("single", 60_000, album=make_album("s", "Single", 1)))
        _add_playlist(fake_client, "pl1", [tracks[:8], tracks[8:]])

    async def test_album_view_first_page(
        self, service: PlaylistStatsService, credential: Credential, playlist: None
    ) -> None:
        """Test album rows are paged 12 at a time and singles excluded."""
        page = await service.get_playlist_breakdown("pl1", credential, view="album", page=1)

        assert page.view == "album"
        assert len(page.items) == 12
        assert (page.page, page.total_pages) == (1, 2)
        assert page.stats.total_tracks == 15
        assert page.stats.unique_albums == 14
        assert page.stats.unique_artists == 3
        assert page.stats.duration_text == "15m"

    async def test_page_clamped_and_cached(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
        playlist: None,
    ) -> None:
        """Test out-of-range pages show the last page and reuse the cache."""
        await service.get_playlist_breakdown("pl1", credential, page=1)
        calls = len(fake_client.calls)

        page = await service.get_playlist_breakdown("pl1", credential, page="99")

        assert page.page == 2
        assert len(page.items) == 2
        assert len(fake_client.calls) == calls

    async def test_artist_view(
        self, service: PlaylistStatsService, credential: Credential, playlist: None
    ) -> None:
        """Test the artist ranking view."""
        page = await service.get_playlist_breakdown("pl1", credential, view="artist")

        assert page.view == "artist"
        assert [(a.id, a.track_count) for a in page.items] == [
            ("ar0", 5),
            ("ar1", 5),
            ("ar2", 4),
        ]

    async def test_unknown_view_means_album(
        self, service: PlaylistStatsService, credential: Credential, playlist: None
    ) -> None:
        """Test anything but 'artist' falls back to the album view."""
        page = await service.get_playlist_breakdown("pl1", credential, view="bogus")
        assert page.view == "album"


class TestAlbumAggregate:
    """Test album detail."""

    @pytest.fixture
    def album(self, fake_client: FakeCatalogClient) -> None:
        """Album with three tracks over two pages; one has no full record."""
        fake_client.add("albums/al1", {"id": "al1", "name": "Album", "total_tracks": 3})
        simplified = [
            {"id": "t1", "uri": "spotify:track:t1", "duration_ms": 1000},
            {"id": "t2", "uri": "spotify:track:t2", "duration_ms": 2000},
            {"id": "t3", "uri": "spotify:track:t3", "duration_ms": 3000},
        ]
        for cursor, payload in make_pages("albums/al1/tracks", [simplified[:2], simplified[2:]]).items():
            fake_client.add(cursor, payload)
        fake_client.add_records(
            "tracks",
            {
                "t1": {**simplified[0], "popularity": 50},
                "t2": {**simplified[1], "popularity": 70},
            },
        )

    async def test_album_with_full_tracks(
        self, service: PlaylistStatsService, credential: Credential, album: None
    ) -> None:
        """Test metadata, track order, detail fallback and duration."""
        result = await service.get_album_aggregate("al1", credential)

        assert result.album["name"] == "Album"
        assert [t["id"] for t in result.tracks] == ["t1", "t2", "t3"]
        assert result.tracks[0]["popularity"] == 50
        assert "popularity" not in result.tracks[2]
        assert result.total_duration_ms == 6000
        assert result.in_playlist == frozenset()

    async def test_in_playlist_marks(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
        album: None,
    ) -> None:
        """Test album tracks present in the playlist are reported by URI."""
        _add_playlist(
            fake_client,
            "pl1",
            [[{"uri": "spotify:track:t2"}, {"uri": "spotify:track:other"}]],
        )

        result = await service.get_album_aggregate("al1", credential, playlist_id="pl1")

        assert result.in_playlist == frozenset({"spotify:track:t2"})

    async def test_album_failure_propagates(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
        album: None,
    ) -> None:
        """Test a failing metadata call fails the whole aggregate."""
        fake_client.add("albums/al1", UnauthorizedError())
        with pytest.raises(UnauthorizedError):
            await service.get_album_aggregate("al1", credential)

    async def test_failed_metadata_cancels_track_fetch(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
        album: None,
    ) -> None:
        """Test no track pages or bulk lookups go out after the metadata call failed."""
        fake_client.add("albums/al1", EntityNotFoundError())

        async def slow_track_pages(endpoint: str) -> None:
            if endpoint != "albums/al1":
                await asyncio.sleep(0.02)

        fake_client.before_request = slow_track_pages

        with pytest.raises(EntityNotFoundError):
            await service.get_album_aggregate("al1", credential)
        calls_at_failure = len(fake_client.calls)
        await asyncio.sleep(0.1)

        assert len(fake_client.calls) == calls_at_failure
        assert fake_client.calls_to("tracks") == []

    async def test_cached_album_is_read_only(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
        album: None,
    ) -> None:
        """Test callers can't change the cached album or its tracks in place."""
        first = await service.get_album_aggregate("al1", credential)

        with pytest.raises(TypeError):
            first.album["name"] = "Changed"  # type: ignore[index]
        with pytest.raises(TypeError):
            first.tracks[0]["popularity"] = 0  # type: ignore[index]

        second = await service.get_album_aggregate("al1", credential)
        assert second is first
        assert second.album["name"] == "Album"
        assert second.tracks[0]["popularity"] == 50

    async def test_album_with_playlist_is_read_only(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
        album: None,
    ) -> None:
        """Test the playlist-marked copy shares the read-only records."""
        _add_playlist(fake_client, "pl1", [[{"uri": "spotify:track:t1"}]])

        marked = await service.get_album_aggregate("al1", credential, playlist_id="pl1")

        with pytest.raises(TypeError):
            marked.tracks[0]["uri"] = "spotify:track:x"  # type: ignore[index]
        plain = await service.get_album_aggregate("al1", credential)
        assert plain.tracks[0]["uri"] == "spotify:track:t1"


class TestUserPlaylists:
    """Test the playlist listing."""

    async def test_page_offset_and_total_pages(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test page N asks for the right offset."""
        fake_client.add("me/playlists", {"items": [{"id": "p13"}], "total": 13})

        result = await service.get_user_playlists_page(credential, page="3")

        assert fake_client.calls[0].params == {"limit": 6, "offset": 12}
        assert (result.page, result.total_pages, result.total) == (3, 3, 13)
        assert result.items == ({"id": "p13"},)

    async def test_garbage_page_is_first_page(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test non-numeric pages normalise to 1."""
        fake_client.add("me/playlists", {"items": [], "total": 0})

        result = await service.get_user_playlists_page(credential, page="abc")

        assert result.page == 1
        assert result.total_pages == 1
        assert fake_client.calls[0].params["offset"] == 0

    async def test_malformed_listing(
        self,
        service: PlaylistStatsService,
        fake_client: FakeCatalogClient,
        credential: Credential,
    ) -> None:
        """Test a listing without items is malformed."""
        fake_client.add("me/playlists", {"total": 3})
        with pytest.raises(MalformedResponseError):
            await service.get_user_playlists_page(credential)
