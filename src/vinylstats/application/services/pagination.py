"""Cursor pagination over catalog list endpoints.

Hey future me - Spotify list endpoints all look like
``{"items": [...], "next": "https://api.spotify.com/v1/...&offset=50"}`` and ``next`` is
null on the last page. Some wrap that in a container (``{"artists": {"items": ..., "next":
...}}`` for followed artists) - pass ``container="artists"`` for those.

ALL-OR-NOTHING: if page 7 of 9 fails, collect_all raises and the first 6 pages are thrown
away. Aggregates compute percentages over the whole collection, so a partial list would
silently produce wrong numbers. Don't "helpfully" return what we have!
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from vinylstats.application.services.deadline import Deadline
from vinylstats.domain.dtos import Credential
from vinylstats.domain.exceptions import MalformedResponseError
from vinylstats.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)

ItemExtractor = Callable[[Any], Any | None]


def keep_records(item: Any) -> dict[str, Any] | None:
    """Default extractor: keep any JSON object item, drop nulls and junk."""
    return item if isinstance(item, dict) else None


def playlist_track(item: Any) -> dict[str, Any] | None:
    """Unwrap a playlist item envelope ``{"track": {...}}``.

    Removed/unavailable tracks come back as ``{"track": null}`` - those are dropped.
    """
    if not isinstance(item, dict):
        return None
    track = item.get("track")
    return track if isinstance(track, dict) else None


def _page_body(payload: dict[str, Any], container: str | None, url: str) -> dict[str, Any]:
    body: Any = payload if container is None else payload.get(container)
    if not isinstance(body, dict):
        raise MalformedResponseError(f"Page from {url} has no '{container}' object")
    if not isinstance(body.get("items"), list):
        raise MalformedResponseError(f"Page from {url} has no 'items' list")
    next_cursor = body.get("next")
    if next_cursor is not None and not isinstance(next_cursor, str):
        raise MalformedResponseError(f"Page from {url} has a non-string 'next' cursor")
    return body


async def iter_pages(
    client: ICatalogClient,
    first_cursor: str | None,
    credential: Credential,
    *,
    extract: ItemExtractor = keep_records,
    container: str | None = None,
    page_delay: float = 0.0,
    deadline: Deadline | None = None,
    timeout: float | None = None,
) -> AsyncIterator[list[Any]]:
    """Yield the extracted items of each page, in API order.

    Streaming variant of collect_all. A consumer that stops early simply
    stops fetching; a failure raises out of the ``async for``.

    Args:
        client: Catalog client
        first_cursor: URL/path of the first page (None = nothing to fetch)
        credential: Bearer credential
        extract: Maps a raw item to the kept value; None drops the item
        container: Key of the nested page object, if any
        page_delay: Seconds to sleep between pages (never before the first)
        deadline: Optional overall budget
        timeout: Per-call timeout (client default when None)
    """
    cursor = first_cursor
    page_number = 0
    seen: set[str] = set()

    while cursor:
        # A page pointing back at itself (or an earlier page) would loop forever
        if cursor in seen:
            raise MalformedResponseError(f"Cursor repeated after page {page_number}: {cursor}")
        seen.add(cursor)
        if page_number > 0 and page_delay > 0:
            await asyncio.sleep(
                page_delay if deadline is None else min(page_delay, deadline.remaining())
            )
        if deadline is not None:
            deadline.check(f"page {page_number + 1}")
            call_timeout = deadline.clamp(timeout)
        else:
            call_timeout = timeout

        payload = await client.request(cursor, credential, call_timeout)
        body = _page_body(payload, container, cursor)
        page_number += 1

        items = [kept for kept in map(extract, body["items"]) if kept is not None]
        dropped = len(body["items"]) - len(items)
        if dropped:
            logger.debug(f"Page {page_number}: dropped {dropped} empty/unusable item(s)")

        yield items

        cursor = body.get("next")


async def collect_all(
    client: ICatalogClient,
    first_cursor: str | None,
    credential: Credential,
    *,
    extract: ItemExtractor = keep_records,
    container: str | None = None,
    page_delay: float = 0.0,
    deadline: Deadline | None = None,
    timeout: float | None = None,
) -> list[Any]:
    """Follow ``next`` cursors until exhausted and return every item.

    Item order matches page order. Any failure aborts the whole collection and
    propagates unchanged - no partial list is ever returned.

    Raises:
        CatalogError: From the client, or MalformedResponseError for a bad page shape
    """
    accumulated: list[Any] = []
    pages = 0
    async for items in iter_pages(
        client,
        first_cursor,
        credential,
        extract=extract,
        container=container,
        page_delay=page_delay,
        deadline=deadline,
        timeout=timeout,
    ):
        accumulated.extend(items)
        pages += 1

    logger.debug(f"Collected {len(accumulated)} item(s) over {pages} page(s)")
    return accumulated


__all__ = ["ItemExtractor", "collect_all", "iter_pages", "keep_records", "playlist_track"]
