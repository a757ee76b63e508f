"""Spotify catalog HTTP client - one call in, decoded JSON or a classified error out."""

import logging
from typing import Any

import httpx

from vinylstats.config import CatalogSettings
from vinylstats.domain.dtos import Credential
from vinylstats.domain.exceptions import (
    MalformedResponseError,
    TransientCatalogError,
    UnauthorizedError,
)
from vinylstats.domain.ports import ICatalogClient
from vinylstats.infrastructure.integrations.error_classifier import (
    classify_status,
    classify_transport_error,
)
from vinylstats.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class CatalogClient(ICatalogClient):
    """HTTP client for Spotify Web API read calls."""

    # Hey future me, this init is deceptively simple - we DON'T create the HTTP client here
    # because we need to be async-friendly. The actual client gets lazy-loaded in _get_client().
    # Tests (and the app lifespan) can hand in their own httpx.AsyncClient instead; we then
    # DON'T own it and close() leaves it alone.
    def __init__(
        self,
        settings: CatalogSettings,
        http_client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """
        Initialize catalog client.

        Args:
            settings: Catalog configuration settings
            http_client: Optional pre-built client (not closed by us)
            rate_limiter: Optional token bucket acquired before every call
        """
        self.settings = settings
        self._client = http_client
        self._owns_client = http_client is None
        self._rate_limiter = rate_limiter

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout_seconds)
        return self._client

    # Hey, this close() is IMPORTANT - if you don't call it, you'll leak connections and
    # eventually run out of file descriptors. Always use this client as an async context
    # manager (async with) or explicitly call close() in finally blocks. Trust me on this.
    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def _resolve_url(self, endpoint: str) -> str:
        # "next" cursors come back as absolute URLs - use them verbatim
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.settings.api_base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    # Hey future me - CENTRALIZED API REQUEST! Every catalog call goes through here.
    # Contract (and it's a strict one):
    # - 2xx + JSON object body        -> return the dict
    # - 401 / 429 / 404               -> Unauthorized / RateLimited / NotFound
    # - any other status, DNS, reset,
    #   timeout                       -> Transient (message kept for logs only)
    # - 2xx but not a JSON object     -> Malformed
    # NO retry on 429! The old code retried with backoff here; now the caller decides.
    async def request(
        self,
        endpoint: str,
        credential: Credential,
        timeout: float | None = None,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make one catalog API call.

        Args:
            endpoint: Absolute URL or path below ``api_base_url``
            credential: Bearer credential
            timeout: Per-call timeout in seconds (settings default when None)
            method: HTTP method
            params: Query parameters
            data: Form body (POST)

        Returns:
            Decoded JSON object

        Raises:
            CatalogError: Classified failure
        """
        if not credential.is_present:
            raise UnauthorizedError("No catalog credential available")

        url = self._resolve_url(endpoint)
        effective_timeout = (
            timeout if timeout is not None else self.settings.request_timeout_seconds
        )
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {credential.access_token}"}

        try:
            if self._rate_limiter is not None:
                # Queueing for a token eats into this call's timeout, not on top of it
                waited = await self._rate_limiter.acquire(max_wait=effective_timeout)
                effective_timeout -= waited
                if effective_timeout <= 0:
                    raise TransientCatalogError(f"No rate limit token in time for {url}")
            response = await client.request(
                method=method,
                url=url,
                params=params,
                data=data,
                headers=headers,
                timeout=effective_timeout,
            )
        except httpx.HTTPError as e:
            error = classify_transport_error(e)
            logger.warning(f"Catalog {method} {url} failed: {error.message}")
            raise error from e

        error = classify_status(response, url)
        if error is not None:
            logger.warning(
                f"Catalog {method} {url} → {response.status_code} ({error.kind.value})"
            )
            raise error

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Non-JSON body from {url}") from e

        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"Expected JSON object from {url}, got {type(payload).__name__}"
            )

        logger.debug(f"Catalog {method} {url} → {response.status_code}")
        return payload

    async def get(
        self,
        endpoint: str,
        credential: Credential,
        timeout: float | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET shortcut."""
        return await self.request(endpoint, credential, timeout, params=params)

    async def post(
        self,
        endpoint: str,
        credential: Credential,
        timeout: float | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """POST shortcut (form-encoded body)."""
        return await self.request(endpoint, credential, timeout, method="POST", data=data)

    # Hey future me, these context manager methods let you use this client with
    # "async with CatalogClient(...) as client:" syntax. This is THE preferred way
    # to use this client - it guarantees cleanup even if exceptions happen. Use it!
    async def __aenter__(self) -> "CatalogClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
