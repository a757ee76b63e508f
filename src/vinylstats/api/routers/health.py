"""Health check endpoint for Docker/Kubernetes probes."""

from fastapi import APIRouter, Request

from vinylstats import __version__
from vinylstats.api.schemas import HealthResponse

router = APIRouter()


# Hey, this is the BASIC health check - no catalog call, no token needed. It answers as long
# as the process runs and reports the aggregate cache size so you can see it filling up.
@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Liveness probe."""
    cache = getattr(request.app.state, "aggregate_cache", None)
    return HealthResponse(
        status="healthy",
        version=__version__,
        cache=cache.get_stats() if cache is not None else {},
    )
