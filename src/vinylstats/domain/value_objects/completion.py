"""Album completion and artist ranking for a playlist's tracks."""

import math
from collections.abc import Iterable
from typing import Any

from vinylstats.domain.dtos import AlbumCompletion, ArtistTally


def completion_percentage(tracks_present: int, total_tracks: int) -> int:
    """Rounded share of an album that is present; 0 when the album size is 0.

    Rounds half up (``12.5 -> 13``), not banker's rounding.
    """
    if total_tracks <= 0:
        return 0
    return math.floor(tracks_present / total_tracks * 100 + 0.5)


def _track_key(track: dict[str, Any]) -> str | None:
    # Local files have no id but still carry a uri
    return track.get("id") or track.get("uri")


def _album_artist_names(album: dict[str, Any]) -> str:
    return ", ".join(
        artist["name"]
        for artist in album.get("artists") or []
        if isinstance(artist, dict) and artist.get("name")
    )


def _album_image(album: dict[str, Any]) -> str | None:
    images = album.get("images") or []
    if images and isinstance(images[0], dict):
        return images[0].get("url")
    return None


# Hey future me - sort order is percentage DESC, then tracks_present DESC, then album name
# ASC. The name comparison is plain str ordering (case-sensitive, "Zebra" < "apple") because
# that's deterministic across locales. Don't swap in casefold() without changing the tests.
def compute_album_completion(
    tracks: Iterable[dict[str, Any]],
    exclude_singles: bool = False,
) -> list[AlbumCompletion]:
    """Rank albums by how complete they are in the given track collection.

    Only tracks whose album has a known integer ``total_tracks`` count. Each
    distinct track ID counts once per album (duplicates in a playlist don't
    push an album past 100%).

    Args:
        tracks: Track records (already unwrapped from playlist envelopes)
        exclude_singles: Skip albums with ``total_tracks <= 1``

    Returns:
        Sorted completion rows
    """
    albums: dict[str, dict[str, Any]] = {}
    present: dict[str, set[str]] = {}

    for track in tracks:
        album = track.get("album")
        if not isinstance(album, dict) or not album.get("id"):
            continue
        total = album.get("total_tracks")
        if isinstance(total, bool) or not isinstance(total, int):
            continue
        if exclude_singles and total <= 1:
            continue
        key = _track_key(track)
        if key is None:
            continue

        album_id = album["id"]
        albums.setdefault(album_id, album)
        present.setdefault(album_id, set()).add(key)

    rows = []
    for album_id, album in albums.items():
        total = album["total_tracks"]
        count = len(present[album_id])
        rows.append(
            AlbumCompletion(
                id=album_id,
                name=album.get("name") or "",
                artist=_album_artist_names(album),
                image=_album_image(album),
                total_tracks=total,
                tracks_present=count,
                percentage=completion_percentage(count, total),
            )
        )

    return sorted(rows, key=lambda row: (-row.percentage, -row.tracks_present, row.name))


def compute_artist_ranking(
    tracks: Iterable[dict[str, Any]],
    max_artists: int = 50,
) -> list[ArtistTally]:
    """Tracks per credited artist, most frequent first, capped at ``max_artists``."""
    names: dict[str, str] = {}
    counts: dict[str, int] = {}

    for track in tracks:
        credited: set[str] = set()
        for artist in track.get("artists") or []:
            if not isinstance(artist, dict) or not artist.get("id"):
                continue
            artist_id = artist["id"]
            if artist_id in credited:
                continue
            credited.add(artist_id)
            names.setdefault(artist_id, artist.get("name") or "")
            counts[artist_id] = counts.get(artist_id, 0) + 1

    ranking = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        ArtistTally(id=artist_id, name=names[artist_id], track_count=count)
        for artist_id, count in ranking[:max_artists]
    ]


def count_unique_artists(tracks: Iterable[dict[str, Any]]) -> int:
    """Number of distinct credited artists (uncapped)."""
    return len(
        {
            artist["id"]
            for track in tracks
            for artist in track.get("artists") or []
            if isinstance(artist, dict) and artist.get("id")
        }
    )
