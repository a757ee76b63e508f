"""Shared fixtures for the unit tests."""

import pytest
from fakes import FakeCatalogClient

from vinylstats.application.cache import AggregateCache
from vinylstats.config import CacheSettings, CatalogSettings, Settings, StatsSettings
from vinylstats.domain.dtos import Credential


@pytest.fixture
def credential() -> Credential:
    """Valid-looking bearer credential."""
    return Credential(access_token="test-token")


@pytest.fixture
def fake_client() -> FakeCatalogClient:
    """Fresh in-memory catalog client."""
    return FakeCatalogClient()


@pytest.fixture
def settings() -> Settings:
    """Settings with every delay switched off so tests don't sleep."""
    return Settings(
        catalog=CatalogSettings(
            page_delay_seconds=0.0,
            batch_delay_seconds=0.0,
            rate_limit_enabled=False,
        ),
        cache=CacheSettings(ttl_seconds=900),
        stats=StatsSettings(),
    )


@pytest.fixture
def aggregate_cache() -> AggregateCache:
    """Empty aggregate cache."""
    return AggregateCache(ttl_seconds=900)
