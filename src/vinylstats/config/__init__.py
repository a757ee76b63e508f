"""Configuration module for vinylstats."""

from .settings import (
    CacheSettings,
    CatalogSettings,
    Settings,
    StatsSettings,
    get_settings,
)

__all__ = [
    "CacheSettings",
    "CatalogSettings",
    "Settings",
    "StatsSettings",
    "get_settings",
]
