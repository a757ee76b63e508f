"""External service integrations."""

from vinylstats.infrastructure.integrations.catalog_client import CatalogClient
from vinylstats.infrastructure.integrations.error_classifier import (
    classify_status,
    classify_transport_error,
)

__all__ = [
    "CatalogClient",
    "classify_status",
    "classify_transport_error",
]
