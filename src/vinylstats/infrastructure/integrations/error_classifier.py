"""Translate httpx outcomes into the closed CatalogError taxonomy.

Hey future me - this is the ONLY place that knows about status codes and httpx exception
types. Everything above the catalog client matches on ErrorKind. If Spotify starts sending
some new status you want handled specially, add it HERE, not in the services.
"""

import httpx

from vinylstats.domain.exceptions import (
    CatalogError,
    EntityNotFoundError,
    RateLimitExceededError,
    TransientCatalogError,
    UnauthorizedError,
)


def _parse_retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(int(value), 0)
    except ValueError:
        # HTTP-date form - not worth parsing, Spotify only sends seconds
        return None


def classify_status(response: httpx.Response, url: str = "?") -> CatalogError | None:
    """Map a non-2xx response to a CatalogError; None for success."""
    status = response.status_code
    if 200 <= status < 300:
        return None

    if status == 401:
        return UnauthorizedError(f"401 Unauthorized for {url}")
    if status == 429:
        retry_after = _parse_retry_after(response)
        return RateLimitExceededError(
            f"429 Too Many Requests for {url} (Retry-After: {retry_after or 'not provided'})",
            retry_after=retry_after,
        )
    if status == 404:
        return EntityNotFoundError(f"404 Not Found for {url}")
    return TransientCatalogError(f"HTTP {status} for {url}")


# Yo, every httpx transport failure (DNS, refused, reset, read/connect/pool timeout, protocol
# garbage) is TRANSIENT. We keep str(exc) in the message for the logs - it's the only clue
# you'll have when someone's DNS is broken - but it never reaches end users.
def classify_transport_error(exc: httpx.HTTPError) -> CatalogError:
    """Map an httpx exception raised before a response was available."""
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response, str(exc.request.url)) or TransientCatalogError(str(exc))
    if isinstance(exc, httpx.TimeoutException):
        return TransientCatalogError(f"Timeout: {str(exc) or type(exc).__name__}")
    return TransientCatalogError(f"{type(exc).__name__}: {exc}")


__all__ = ["classify_status", "classify_transport_error"]
