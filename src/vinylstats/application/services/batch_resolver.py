"""Bulk ID lookups split into catalog-sized chunks.

Hey future me - this is the PERFORMANCE BOOSTER for genre stats. A 600-track playlist has
maybe 250 distinct artists: one-by-one that's 250 calls, in chunks of 50 it's 5. Spotify's
``/artists?ids=a,b,c`` (and ``/tracks?ids=``) return ``{"artists": [...]}`` in request
order with ``null`` for IDs that don't resolve (deleted artist, bad ID). Nulls are simply
left OUT of the mapping - "key missing" means "not resolvable", there's no sentinel.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from vinylstats.application.services.deadline import Deadline
from vinylstats.domain.dtos import Credential
from vinylstats.domain.exceptions import ConfigurationError, MalformedResponseError
from vinylstats.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50


def chunk_ids(ids: Iterable[str | None], chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[list[str]]:
    """Deduplicate IDs (dropping empties) and split them into chunks.

    Order inside the result follows first occurrence, which keeps request
    URLs stable for a given input - handy in tests and logs.
    """
    if chunk_size < 1:
        raise ConfigurationError(f"Batch chunk size must be at least 1, got {chunk_size}")
    unique = list(dict.fromkeys(entity_id for entity_id in ids if entity_id))
    return [unique[i : i + chunk_size] for i in range(0, len(unique), chunk_size)]


def _merge_chunk(
    payload: dict[str, Any], response_key: str, endpoint: str
) -> dict[str, dict[str, Any]]:
    records = payload.get(response_key)
    if not isinstance(records, list):
        raise MalformedResponseError(f"Bulk response from {endpoint} has no '{response_key}' list")
    return {
        record["id"]: record
        for record in records
        if isinstance(record, dict) and record.get("id")
    }


class BatchResolver:
    """Resolves many IDs through a bulk-lookup endpoint, chunk by chunk.

    All-or-nothing: any failing chunk aborts the whole call and no partial
    mapping escapes. The one exception is ``skip_malformed``: a chunk whose
    response has the wrong shape is logged and contributes nothing.
    """

    def __init__(
        self,
        client: ICatalogClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_delay: float = 0.0,
        max_concurrency: int = 1,
        skip_malformed: bool = False,
    ) -> None:
        """
        Initialize batch resolver.

        Args:
            client: Catalog client
            chunk_size: IDs per bulk request (Spotify max is 50 for artists/tracks)
            chunk_delay: Seconds between sequential chunks (burst protection)
            max_concurrency: Chunks in flight at once; 1 = strictly sequential
            skip_malformed: Log and skip chunks with a malformed response instead of failing
        """
        if chunk_size < 1:
            raise ConfigurationError(f"Batch chunk size must be at least 1, got {chunk_size}")
        if max_concurrency < 1:
            raise ConfigurationError(
                f"Batch concurrency must be at least 1, got {max_concurrency}"
            )
        self._client = client
        self.chunk_size = chunk_size
        self.chunk_delay = chunk_delay
        self.max_concurrency = max_concurrency
        self.skip_malformed = skip_malformed

    async def resolve(
        self,
        ids: Iterable[str | None],
        credential: Credential,
        *,
        endpoint: str,
        response_key: str,
        deadline: Deadline | None = None,
        timeout: float | None = None,
    ) -> dict[str, dict[str, Any]]:
        """Look up every ID and merge the results.

        Args:
            ids: Entity IDs (duplicates and empties are fine)
            credential: Bearer credential
            endpoint: Bulk endpoint path, e.g. ``"artists"``
            response_key: Key of the record list in the response, e.g. ``"artists"``
            deadline: Optional overall budget
            timeout: Per-call timeout

        Returns:
            ID → record for every ID the catalog resolved

        Raises:
            CatalogError: First chunk failure (nothing partial is returned)
        """
        chunks = chunk_ids(ids, self.chunk_size)
        if not chunks:
            return {}

        logger.debug(
            f"Resolving {sum(len(c) for c in chunks)} id(s) via /{endpoint} "
            f"in {len(chunks)} chunk(s)"
        )

        if self.max_concurrency == 1 or len(chunks) == 1:
            results = await self._resolve_sequential(
                chunks, credential, endpoint, response_key, deadline, timeout
            )
        else:
            results = await self._resolve_pooled(
                chunks, credential, endpoint, response_key, deadline, timeout
            )

        merged: dict[str, dict[str, Any]] = {}
        for chunk_result in results:
            merged.update(chunk_result)
        return merged

    async def _resolve_chunk(
        self,
        index: int,
        chunk: list[str],
        credential: Credential,
        endpoint: str,
        response_key: str,
        deadline: Deadline | None,
        timeout: float | None,
    ) -> dict[str, dict[str, Any]]:
        if deadline is not None:
            deadline.check(f"chunk {index + 1}")
            timeout = deadline.clamp(timeout)

        try:
            payload = await self._client.request(
                endpoint, credential, timeout, params={"ids": ",".join(chunk)}
            )
            return _merge_chunk(payload, response_key, endpoint)
        except MalformedResponseError as e:
            if not self.skip_malformed:
                raise
            logger.warning(
                f"Skipping malformed /{endpoint} chunk {index + 1} "
                f"({len(chunk)} id(s)): {e.message}"
            )
            return {}

    async def _resolve_sequential(
        self,
        chunks: list[list[str]],
        credential: Credential,
        endpoint: str,
        response_key: str,
        deadline: Deadline | None,
        timeout: float | None,
    ) -> list[dict[str, dict[str, Any]]]:
        results = []
        for index, chunk in enumerate(chunks):
            if index > 0 and self.chunk_delay > 0:
                await asyncio.sleep(self.chunk_delay)
            results.append(
                await self._resolve_chunk(
                    index, chunk, credential, endpoint, response_key, deadline, timeout
                )
            )
        return results

    # Yo, the pooled path: at most max_concurrency chunks in flight (semaphore). The FIRST
    # failure wins - we cancel every chunk still pending and re-raise that exact error, so
    # the caller sees e.g. RateLimitExceededError rather than some ExceptionGroup.
    async def _resolve_pooled(
        self,
        chunks: list[list[str]],
        credential: Credential,
        endpoint: str,
        response_key: str,
        deadline: Deadline | None,
        timeout: float | None,
    ) -> list[dict[str, dict[str, Any]]]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(index: int, chunk: list[str]) -> dict[str, dict[str, Any]]:
            async with semaphore:
                return await self._resolve_chunk(
                    index, chunk, credential, endpoint, response_key, deadline, timeout
                )

        tasks = [asyncio.create_task(run(i, chunk)) for i, chunk in enumerate(chunks)]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in tasks:
                if task in done and task.exception() is not None:
                    raise task.exception()  # type: ignore[misc]
            return [task.result() for task in tasks]
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)


async def resolve_batch(
    client: ICatalogClient,
    ids: Iterable[str | None],
    credential: Credential,
    *,
    endpoint: str,
    response_key: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_delay: float = 0.0,
    max_concurrency: int = 1,
    skip_malformed: bool = False,
    deadline: Deadline | None = None,
    timeout: float | None = None,
) -> dict[str, dict[str, Any]]:
    """One-shot functional wrapper around BatchResolver.resolve."""
    resolver = BatchResolver(
        client,
        chunk_size=chunk_size,
        chunk_delay=chunk_delay,
        max_concurrency=max_concurrency,
        skip_malformed=skip_malformed,
    )
    return await resolver.resolve(
        ids,
        credential,
        endpoint=endpoint,
        response_key=response_key,
        deadline=deadline,
        timeout=timeout,
    )


__all__ = ["DEFAULT_CHUNK_SIZE", "BatchResolver", "chunk_ids", "resolve_batch"]
