"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogSettings(BaseModel):
    """Catalog (Spotify Web API) access settings.

    Hey future me - batch_size 50 is Spotify's max for /artists and /tracks bulk lookups.
    Other catalogs have other limits (Spotify /albums is 20!) so this is NOT a universal
    constant - keep it configurable.
    """

    api_base_url: str = "https://api.spotify.com/v1"
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    page_size: int = Field(default=50, ge=1, le=100)
    page_delay_seconds: float = Field(default=0.1, ge=0)
    batch_size: int = Field(default=50, ge=1)
    batch_delay_seconds: float = Field(default=0.0, ge=0)
    batch_concurrency: int = Field(default=1, ge=1)
    skip_malformed_batches: bool = False
    rate_limit_enabled: bool = True
    rate_limit_tokens: int = Field(default=10, ge=1)
    rate_limit_refill_per_second: float = Field(default=2.0, gt=0)


class CacheSettings(BaseModel):
    """Aggregate cache settings."""

    ttl_seconds: int = Field(default=900, ge=1)
    # Off = original behaviour: two concurrent misses both recompute, last write wins
    coalesce_in_flight: bool = False


class StatsSettings(BaseModel):
    """Aggregation and paging knobs."""

    top_genres: int = Field(default=15, ge=1)
    max_artists: int = Field(default=50, ge=1)
    albums_per_page: int = Field(default=12, ge=1)
    artists_per_page: int = Field(default=50, ge=1)
    playlists_per_page: int = Field(default=6, ge=1, le=50)
    exclude_singles: bool = True
    # None = no overall budget (each call still has its own timeout)
    aggregate_deadline_seconds: float | None = Field(default=None, gt=0)


class Settings(BaseSettings):
    """Root settings object.

    Nested values come from env vars with a double underscore, e.g.
    ``VINYLSTATS_CATALOG__BATCH_SIZE=20`` or ``VINYLSTATS_CACHE__TTL_SECONDS=60``.
    """

    model_config = SettingsConfigDict(
        env_prefix="VINYLSTATS_",
        env_nested_delimiter="__",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    app_name: str = "vinylstats"
    log_level: str = "INFO"
    log_json: bool = False

    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    stats: StatsSettings = Field(default_factory=StatsSettings)


# Hey future me - cached so every Depends(get_settings) sees the SAME object. Tests that
# tweak env vars must call get_settings.cache_clear() or build Settings(...) directly.
@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
