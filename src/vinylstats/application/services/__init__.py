"""Application services - pagination, batching and the cached stats facade."""

from vinylstats.application.services.batch_resolver import (
    BatchResolver,
    chunk_ids,
    resolve_batch,
)
from vinylstats.application.services.deadline import Deadline
from vinylstats.application.services.pagination import (
    collect_all,
    iter_pages,
    keep_records,
    playlist_track,
)
from vinylstats.application.services.playlist_stats_service import PlaylistStatsService

__all__ = [
    "BatchResolver",
    "Deadline",
    "PlaylistStatsService",
    "chunk_ids",
    "collect_all",
    "iter_pages",
    "keep_records",
    "playlist_track",
    "resolve_batch",
]
