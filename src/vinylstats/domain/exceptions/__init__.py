"""Domain exceptions."""

from enum import Enum
from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing str(exception).
    # The *args lets subclasses pass extra context. This is your base class - DON'T raise it directly!
    # Always use a specific subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    Raised when an entity ID or page parameter fails validation before any
    catalog call is made.

    HTTP Status: 400

    Example:
        raise ValidationError("Invalid playlist id: '<script>'")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration is missing or invalid.

    HTTP Status: 503 (Service Unavailable)

    Example:
        raise ConfigurationError("batch size must be at least 1")
    """

    pass


# =============================================================================
# Catalog errors
# Hey future me - this is the CLOSED taxonomy every catalog call fails with!
# Match on `err.kind` (an enum), never on the message string. The message is
# for logs only and may contain whatever httpx told us - never show it raw to users.
# =============================================================================


class ErrorKind(str, Enum):
    """Closed set of failure kinds a catalog operation can end with."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    MALFORMED = "malformed"


class CatalogError(DomainException):
    """A catalog operation failed.

    Never raised directly - use the subclass matching the kind (or
    ``CatalogError.from_kind``) so ``except UnauthorizedError`` works too.
    """

    kind: ErrorKind = ErrorKind.TRANSIENT
    default_message = "Catalog request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.detail = message

    @classmethod
    def from_kind(cls, kind: ErrorKind, message: str | None = None) -> "CatalogError":
        """Build the concrete error class for a kind."""
        return _ERRORS_BY_KIND[kind](message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class UnauthorizedError(CatalogError):
    """Credential missing, invalid or expired - caller must re-authenticate.

    HTTP Status: 401
    """

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Catalog credential rejected"


class RateLimitExceededError(CatalogError):
    """Catalog API answered 429 Too Many Requests.

    No retry happens inside the core - the caller decides when to try again.
    ``retry_after`` carries the Retry-After header (seconds) when the API sent one.

    HTTP Status: 429
    """

    kind = ErrorKind.RATE_LIMITED
    default_message = "Catalog rate limit exceeded"

    def __init__(self, message: str | None = None, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class EntityNotFoundError(CatalogError):
    """Requested playlist/album/artist does not exist.

    HTTP Status: 404
    """

    kind = ErrorKind.NOT_FOUND
    default_message = "Catalog entity not found"


class TransientCatalogError(CatalogError):
    """Network or server failure (DNS, reset, timeout, 5xx). Safe to retry later.

    HTTP Status: 502
    """

    kind = ErrorKind.TRANSIENT
    default_message = "Catalog temporarily unavailable"


class MalformedResponseError(CatalogError):
    """Response shape was not what we expect. Treat as a bug signal.

    HTTP Status: 502
    """

    kind = ErrorKind.MALFORMED
    default_message = "Catalog response malformed"


_ERRORS_BY_KIND: dict[ErrorKind, type[CatalogError]] = {
    ErrorKind.UNAUTHORIZED: UnauthorizedError,
    ErrorKind.RATE_LIMITED: RateLimitExceededError,
    ErrorKind.NOT_FOUND: EntityNotFoundError,
    ErrorKind.TRANSIENT: TransientCatalogError,
    ErrorKind.MALFORMED: MalformedResponseError,
}


__all__ = [
    # Base
    "DomainException",
    # Input / setup
    "ValidationError",
    "ConfigurationError",
    # Catalog taxonomy
    "ErrorKind",
    "CatalogError",
    "UnauthorizedError",
    "RateLimitExceededError",
    "EntityNotFoundError",
    "TransientCatalogError",
    "MalformedResponseError",
]
