"""Pure aggregation functions and small value helpers (no I/O in here)."""

from vinylstats.domain.value_objects.completion import (
    completion_percentage,
    compute_album_completion,
    compute_artist_ranking,
    count_unique_artists,
)
from vinylstats.domain.value_objects.duration import (
    format_duration,
    total_duration_ms,
    track_duration_ms,
)
from vinylstats.domain.value_objects.genres import (
    collect_artist_ids,
    compute_genre_table,
    count_genres,
    top_genres,
)
from vinylstats.domain.value_objects.identifiers import (
    is_valid_entity_id,
    normalize_page_number,
    page_slice,
    require_entity_id,
    total_pages,
)

__all__ = [
    "collect_artist_ids",
    "completion_percentage",
    "compute_album_completion",
    "compute_artist_ranking",
    "compute_genre_table",
    "count_genres",
    "count_unique_artists",
    "format_duration",
    "is_valid_entity_id",
    "normalize_page_number",
    "page_slice",
    "require_entity_id",
    "top_genres",
    "total_duration_ms",
    "total_pages",
    "track_duration_ms",
]
