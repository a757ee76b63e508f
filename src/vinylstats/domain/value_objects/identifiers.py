"""Validation of caller-supplied entity IDs and page numbers."""

import math
import re
from typing import Any

from vinylstats.domain.exceptions import ValidationError

MAX_ID_LENGTH = 100
MAX_PAGE = 1000

_FORBIDDEN_ID_CHARS = re.compile(r"[<>\"']")
# Leading integer of a query string value: " 2.5" -> 2, "3abc" -> 3. At most 12 digits,
# anything that long clamps to MAX_PAGE anyway.
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]{1,12})")


def is_valid_entity_id(entity_id: Any) -> bool:
    """Check a catalog ID: non-empty string, at most 100 chars, no quotes or angle brackets."""
    return (
        isinstance(entity_id, str)
        and 0 < len(entity_id) <= MAX_ID_LENGTH
        and not _FORBIDDEN_ID_CHARS.search(entity_id)
    )


def require_entity_id(entity_id: Any, entity_type: str) -> str:
    """Return the ID unchanged or raise ValidationError."""
    if not is_valid_entity_id(entity_id):
        raise ValidationError(f"Invalid {entity_type} id: {entity_id!r}")
    return entity_id


# Hey future me - this NEVER raises. Garbage ("abc", None, "") becomes page 1 and
# out-of-range numbers get clamped, same as the old UI did with ?page= query params.
# Strings only need a leading integer ("2.5" is page 2), infinities and NaN are garbage.
def normalize_page_number(page: Any) -> int:
    """Coerce a page parameter to an int in ``1..1000``."""
    if isinstance(page, str):
        match = _LEADING_INT.match(page)
        if match is None:
            return 1
        number = int(match.group(1))
    else:
        try:
            number = int(page)
        except (TypeError, ValueError, OverflowError):
            return 1
    return max(1, min(MAX_PAGE, number))


def total_pages(item_count: int, per_page: int) -> int:
    """Number of pages needed for ``item_count`` items; at least 1."""
    return max(1, math.ceil(item_count / per_page))


def page_slice[T](items: tuple[T, ...], page: int, per_page: int) -> tuple[tuple[T, ...], int, int]:
    """Cut one page out of a sequence.

    The page is clamped to the last page, so asking for page 9 of 3 returns page 3.

    Returns:
        (items on the page, effective page, total pages)
    """
    pages = total_pages(len(items), per_page)
    current = min(normalize_page_number(page), pages)
    start = (current - 1) * per_page
    return items[start : start + per_page], current, pages
