"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette import status

from core.database import HealthCheckEntry, database_health_check
from core.ratelimit import limiter
from schemas import (
    HealthCheckEntryResponse,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
)

router = APIRouter(tags=["health"])

_UNHEALTHY_RESPONSE = {
    503: {"description": "One or more health checks failed"},
}


def _status_label(healthy: bool) -> str:
    return "Healthy" if healthy else "Unhealthy"


def _status_code(healthy: bool) -> int:
    return status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE


def _to_response(entry: HealthCheckEntry) -> HealthCheckEntryResponse:
    return HealthCheckEntryResponse(
        name=entry.name,
        status=_status_label(entry.healthy),
        description=entry.description,
        duration=round(entry.duration_ms, 2),
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok")


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    responses=_UNHEALTHY_RESPONSE,
)
async def live(request: Request) -> JSONResponse:
    """Liveness probe: the process is up and can reach its database."""
    entry = await database_health_check(request.app.state.engine)
    body = LivenessResponse(
        status=_status_label(entry.healthy),
        timestamp=datetime.now(UTC),
    )
    return JSONResponse(
        status_code=_status_code(entry.healthy),
        content=body.model_dump(mode="json"),
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        503: {
            "description": "Startup not finished or a health check failed",
        }
    },
)
@limiter.limit("30/minute")
async def ready(request: Request) -> JSONResponse:
    """Readiness probe.

    Returns 200 only when:
    - Startup initialization has completed successfully
    - Every readiness check passes
    """
    init_error = getattr(request.app.state, "init_error", None)
    if init_error:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Initialization failed: {init_error}",
        )

    init_done = bool(getattr(request.app.state, "init_done", False))
    if not init_done:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Starting",
        )

    entries = [await database_health_check(request.app.state.engine)]
    healthy = all(entry.healthy for entry in entries)

    body = ReadinessResponse(
        status=_status_label(healthy),
        checks=[_to_response(entry) for entry in entries],
        timestamp=datetime.now(UTC),
    )
    return JSONResponse(
        status_code=_status_code(healthy),
        content=body.model_dump(mode="json"),
    )
