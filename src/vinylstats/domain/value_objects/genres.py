"""Genre distribution of a track collection."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from vinylstats.domain.dtos import GenreShare


def _credited_artist_ids(track: dict[str, Any]) -> list[str]:
    """Distinct artist IDs on a track, in credit order."""
    seen: dict[str, None] = {}
    for artist in track.get("artists") or []:
        if isinstance(artist, dict) and artist.get("id"):
            seen.setdefault(artist["id"], None)
    return list(seen)


def collect_artist_ids(tracks: Iterable[dict[str, Any]]) -> set[str]:
    """Every artist ID credited anywhere in the collection."""
    ids: set[str] = set()
    for track in tracks:
        ids.update(_credited_artist_ids(track))
    return ids


# Hey future me - the counting unit is the (track, artist, genre) TRIPLE. An artist on 30
# tracks adds their genres 30 times, which is what we want (the playlist IS mostly that
# artist). But the same artist credited twice on one track, or a genre listed twice for one
# artist, only counts once - hence the dedupe on both levels.
def count_genres(
    tracks: Iterable[dict[str, Any]],
    artist_genres: Mapping[str, Sequence[str]],
) -> dict[str, int]:
    """Count genre occurrences; insertion order is first-encountered order."""
    counts: dict[str, int] = {}
    for track in tracks:
        for artist_id in _credited_artist_ids(track):
            for genre in dict.fromkeys(artist_genres.get(artist_id) or ()):
                counts[genre] = counts.get(genre, 0) + 1
    return counts


def compute_genre_table(
    tracks: Iterable[dict[str, Any]],
    artist_genres: Mapping[str, Sequence[str]],
) -> list[GenreShare]:
    """Full genre table sorted by count desc.

    Ties keep first-encountered order (``sorted`` is stable). Percentages are
    ``count / total * 100`` over the FULL table, so they sum to 100 here -
    truncating afterwards does not renormalise.
    """
    counts = count_genres(tracks, artist_genres)
    total = sum(counts.values())
    if total == 0:
        return []

    table = [
        GenreShare(name=name, count=count, percentage=count / total * 100)
        for name, count in counts.items()
    ]
    return sorted(table, key=lambda share: share.count, reverse=True)


def top_genres(table: Sequence[GenreShare], limit: int = 15) -> tuple[GenreShare, ...]:
    """Prefix of an already sorted genre table."""
    return tuple(table[:limit])
