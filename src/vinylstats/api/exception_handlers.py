"""Custom exception handlers for FastAPI application.

This module registers global exception handlers that convert domain exceptions
into proper HTTP responses with appropriate status codes.

Hey future me - users NEVER see raw catalog messages! Those can contain URLs, httpx
internals, whatever. The handlers log the detail and answer with a fixed, friendly text
per ErrorKind. Only ValidationError messages are shown as-is (we wrote them ourselves).
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from vinylstats.domain.exceptions import (
    CatalogError,
    ConfigurationError,
    ErrorKind,
    RateLimitExceededError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_GENERIC_FAILURE = "The music catalog could not be reached. Please try again later."


# Hey future me, this registers GLOBAL exception handlers for the entire app! FastAPI will call
# these whenever matching exceptions are raised in ANY endpoint (or dependency - the missing
# bearer token raises UnauthorizedError from get_credential). The CatalogError handler
# dispatches on err.kind so every subclass lands in the right branch. Without this, domain
# exceptions would leak as 500 errors with stack traces to clients!
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain exceptions.

    This function registers handlers for:
    - CatalogError (every ErrorKind) → 401 / 429 / 404 / 502
    - ValidationError → 400
    - ConfigurationError → 503

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle invalid IDs/params with 400 Bad Request."""
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": exc.message},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle configuration errors with 503 Service Unavailable."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Service misconfigured"},
        )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        """Map a catalog failure kind to its HTTP response."""
        extra = {"path": request.url.path, "kind": exc.kind.value, "error": exc.message}

        if exc.kind is ErrorKind.UNAUTHORIZED:
            logger.info("Unauthorized at %s: %s", request.url.path, exc.message, extra=extra)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "error": "Your session has expired. Please log in again.",
                    "action": "reauthenticate",
                },
            )

        if exc.kind is ErrorKind.RATE_LIMITED:
            logger.warning(
                "Rate limit exceeded at %s: %s", request.url.path, exc.message, extra=extra
            )
            retry_after = exc.retry_after if isinstance(exc, RateLimitExceededError) else None
            headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Too many requests. Please wait and try again."},
                headers=headers,
            )

        if exc.kind is ErrorKind.NOT_FOUND:
            logger.info("Not found at %s: %s", request.url.path, exc.message, extra=extra)
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "Not found"},
            )

        # Transient and Malformed: same answer to the user, but Malformed is a bug signal
        if exc.kind is ErrorKind.MALFORMED:
            logger.error(
                "Malformed catalog response at %s: %s",
                request.url.path,
                exc.message,
                extra=extra,
                exc_info=exc,
            )
        else:
            logger.warning(
                "Catalog failure at %s: %s", request.url.path, exc.message, extra=extra
            )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": _GENERIC_FAILURE},
        )
