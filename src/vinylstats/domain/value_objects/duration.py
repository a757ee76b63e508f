"""Track duration summation and human-readable formatting."""

import math
from collections.abc import Iterable
from typing import Any


def track_duration_ms(track: dict[str, Any] | None) -> int:
    """Duration of one track record in ms; missing or junk values count as 0."""
    if not track:
        return 0
    value = track.get("duration_ms")
    # bool is an int subclass, don't count True as 1ms
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    if not math.isfinite(value):
        return 0
    return max(int(value), 0)


def total_duration_ms(tracks: Iterable[dict[str, Any] | None]) -> int:
    """Sum ``duration_ms`` over a track collection."""
    return sum(track_duration_ms(track) for track in tracks)


# Hey future me - the rules here are asymmetric on purpose: zero (or negative, NaN,
# infinite) is "0m", NOT "0s". Under a minute shows seconds ("45s"), under an hour shows
# minutes only ("1m" - the 30s of 90000ms are dropped), and anything with hours shows
# "Xh Ym" even when Y is 0.
def format_duration(milliseconds: int | float | None) -> str:
    """Format a duration as ``"Hh Mm"``, ``"Mm"`` or ``"Ss"``.

    Examples:
        >>> format_duration(0)
        '0m'
        >>> format_duration(45_000)
        '45s'
        >>> format_duration(90_000)
        '1m'
        >>> format_duration(3_661_000)
        '1h 1m'
    """
    if milliseconds is None or not math.isfinite(milliseconds) or milliseconds <= 0:
        return "0m"

    total_seconds = int(milliseconds // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"
