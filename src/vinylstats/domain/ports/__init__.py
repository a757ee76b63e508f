"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from typing import Any

from vinylstats.domain.dtos import Credential


# Hey future me, ICatalogClient is a PORT (Hexagonal Architecture)! The collector, the batch
# resolver and the stats service only know this interface - the httpx implementation lives
# in infrastructure/integrations/catalog_client.py. Tests hand in a fake that serves canned
# pages. CONTRACT: return the decoded JSON object on 2xx, raise a CatalogError subclass for
# EVERYTHING else. Never leak httpx exceptions through this interface!
class ICatalogClient(ABC):
    """Port for single catalog API calls."""

    @abstractmethod
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
        """
        Issue one call against the catalog API.

        Args:
            endpoint: Absolute URL (e.g. a "next" cursor) or path below the API base URL
            credential: Bearer credential
            timeout: Seconds for this call (client default when None)
            method: HTTP method
            params: Query parameters
            data: Form body for POST calls

        Returns:
            Decoded JSON object

        Raises:
            CatalogError: Classified failure (see ErrorKind)
        """
        pass


__all__ = ["ICatalogClient"]
