"""Tests for the catalog HTTP client."""

from collections.abc import AsyncGenerator

import httpx
import pytest
from pytest_httpx import HTTPXMock

from vinylstats.config import CatalogSettings
from vinylstats.domain.dtos import Credential
from vinylstats.domain.exceptions import (
    EntityNotFoundError,
    ErrorKind,
    MalformedResponseError,
    RateLimitExceededError,
    TransientCatalogError,
    UnauthorizedError,
)
from vinylstats.infrastructure.integrations import CatalogClient
from vinylstats.infrastructure.rate_limiter import RateLimiter, RateLimiterConfig

BASE = "https://api.test/v1"


@pytest.fixture
def catalog_settings() -> CatalogSettings:
    """Catalog settings pointing at a fake host."""
    return CatalogSettings(api_base_url=BASE, request_timeout_seconds=5.0)


@pytest.fixture
async def catalog_client(catalog_settings: CatalogSettings) -> AsyncGenerator[CatalogClient, None]:
    """Client owning its own httpx pool (intercepted by HTTPXMock)."""
    client = CatalogClient(catalog_settings)
    yield client
    await client.close()


class TestCatalogClientSuccess:
    """Test successful calls."""

    async def test_returns_json_object(
        self, catalog_client: CatalogClient, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test a 200 JSON object is returned as a dict."""
        httpx_mock.add_response(url=f"{BASE}/albums/al1", json={"id": "al1"})

        payload = await catalog_client.request("albums/al1", credential)

        assert payload == {"id": "al1"}

    async def test_sends_bearer_header(
        self, catalog_client: CatalogClient, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test the credential goes out as a bearer token."""
        httpx_mock.add_response(url=f"{BASE}/me/playlists?limit=6&offset=0", json={})

        await catalog_client.get("me/playlists", credential, params={"limit": 6, "offset": 0})

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Authorization"] == "Bearer test-token"

    async def test_absolute_cursor_used_verbatim(
        self, catalog_client: CatalogClient, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test a ``next`` URL isn't glued onto the base URL."""
        cursor = "https://api.spotify.com/v1/playlists/p/tracks?offset=50&limit=50"
        httpx_mock.add_response(url=cursor, json={"items": [], "next": None})

        assert await catalog_client.request(cursor, credential) == {"items": [], "next": None}

    async def test_injected_http_client_not_closed(
        self, catalog_settings: CatalogSettings, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test close() leaves a borrowed httpx client open."""
        httpx_mock.add_response(url=f"{BASE}/albums/al1", json={"id": "al1"})
        async with httpx.AsyncClient() as http_client:
            async with CatalogClient(catalog_settings, http_client=http_client) as client:
                await client.request("albums/al1", credential)
            assert not http_client.is_closed


class TestCatalogClientErrors:
    """Test failure classification."""

    @pytest.mark.parametrize(
        ("status_code", "error_class"),
        [
            (401, UnauthorizedError),
            (404, EntityNotFoundError),
            (500, TransientCatalogError),
            (503, TransientCatalogError),
            (403, TransientCatalogError),
        ],
    )
    async def test_status_mapping(
        self,
        catalog_client: CatalogClient,
        httpx_mock: HTTPXMock,
        credential: Credential,
        status_code: int,
        error_class: type,
    ) -> None:
        """Test non-2xx statuses map to their error kind."""
        httpx_mock.add_response(url=f"{BASE}/albums/al1", status_code=status_code)

        with pytest.raises(error_class):
            await catalog_client.request("albums/al1", credential)

    async def test_rate_limit_with_retry_after(
        self, catalog_client: CatalogClient, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test 429 carries Retry-After and is not retried."""
        httpx_mock.add_response(
            url=f"{BASE}/artists?ids=a,b", status_code=429, headers={"Retry-After": "7"}
        )

        with pytest.raises(RateLimitExceededError) as exc_info:
            await catalog_client.request("artists", credential, params={"ids": "a,b"})

        assert exc_info.value.retry_after == 7
        assert len(httpx_mock.get_requests()) == 1

    async def test_timeout_is_transient(
        self, catalog_client: CatalogClient, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test a timeout surfaces as Transient with the cause kept."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        with pytest.raises(TransientCatalogError) as exc_info:
            await catalog_client.request("albums/al1", credential)

        assert exc_info.value.kind is ErrorKind.TRANSIENT
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    async def test_connection_error_is_transient(
        self, catalog_client: CatalogClient, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test DNS/refused errors are Transient."""
        httpx_mock.add_exception(httpx.ConnectError("Name or service not known"))

        with pytest.raises(TransientCatalogError, match="ConnectError"):
            await catalog_client.request("albums/al1", credential)

    @pytest.mark.parametrize(
        "response_kwargs",
        [{"text": "<html>oops</html>"}, {"json": ["not", "an", "object"]}],
    )
    async def test_non_object_body_is_malformed(
        self,
        catalog_client: CatalogClient,
        httpx_mock: HTTPXMock,
        credential: Credential,
        response_kwargs: dict,
    ) -> None:
        """Test 2xx bodies that aren't a JSON object are Malformed."""
        httpx_mock.add_response(url=f"{BASE}/albums/al1", **response_kwargs)

        with pytest.raises(MalformedResponseError):
            await catalog_client.request("albums/al1", credential)

    async def test_absent_credential_makes_no_request(
        self, catalog_client: CatalogClient, httpx_mock: HTTPXMock
    ) -> None:
        """Test a blank token fails fast as Unauthorized."""
        with pytest.raises(UnauthorizedError):
            await catalog_client.request("albums/al1", Credential(access_token=""))
        assert httpx_mock.get_requests() == []


class TestCatalogClientRateLimiter:
    """Test the optional token bucket."""

    async def test_acquires_token_per_call(
        self, catalog_settings: CatalogSettings, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test each request consumes one token."""
        httpx_mock.add_response(url=f"{BASE}/albums/al1", json={}, is_reusable=True)
        limiter = RateLimiter(RateLimiterConfig(max_tokens=5, refill_rate=0.001))

        async with CatalogClient(catalog_settings, rate_limiter=limiter) as client:
            await client.request("albums/al1", credential)
            await client.request("albums/al1", credential)

        assert limiter.available_tokens < 3.1

    async def test_token_wait_bounded_by_call_timeout(
        self, catalog_settings: CatalogSettings, httpx_mock: HTTPXMock, credential: Credential
    ) -> None:
        """Test an empty bucket that can't refill within the timeout fails as Transient."""
        httpx_mock.add_response(url=f"{BASE}/albums/al1", json={})
        limiter = RateLimiter(RateLimiterConfig(max_tokens=1, refill_rate=0.001))

        async with CatalogClient(catalog_settings, rate_limiter=limiter) as client:
            await client.request("albums/al1", credential)
            with pytest.raises(TransientCatalogError):
                await client.request("albums/al1", credential, timeout=0.5)

        assert len(httpx_mock.get_requests()) == 1
