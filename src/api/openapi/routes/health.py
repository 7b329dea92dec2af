"""Health check endpoints."""

from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import FactoryDep, SettingsDep
from src.commons.infrastructure.blob.base import HealthStatus as ProbeResult

router = APIRouter()


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    latency_ms: float | None = Field(default=None, description="Probe latency")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


async def _probe_all(factory: FactoryDep) -> dict[str, ProbeResult]:
    """Run the health probe of every infrastructure client."""
    probes = {
        "blob_storage": factory.get_blob_storage,
        "document_db": factory.get_document_db,
        "video_platform": factory.get_video_platform,
    }
    results: dict[str, ProbeResult] = {}
    for name, get_client in probes.items():
        try:
            results[name] = await get_client().health_check()
        except Exception as e:
            results[name] = ProbeResult(healthy=False, latency_ms=0.0, message=str(e))
    return results


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its components.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of all service components."""
    results = await _probe_all(factory)
    components = [
        ComponentHealth(
            name=name,
            status=HealthStatus.HEALTHY if result.healthy else HealthStatus.UNHEALTHY,
            latency_ms=round(result.latency_ms, 2),
            message=result.message,
        )
        for name, result in results.items()
    ]

    unhealthy_count = sum(1 for c in components if c.status == HealthStatus.UNHEALTHY)
    if unhealthy_count == 0:
        overall_status = HealthStatus.HEALTHY
    elif unhealthy_count >= 2:
        overall_status = HealthStatus.UNHEALTHY
    else:
        overall_status = HealthStatus.DEGRADED

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Simple liveness check for Kubernetes probes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Readiness check for Kubernetes probes.",
)
async def readiness(
    factory: FactoryDep,
) -> ReadinessResponse:
    """Ready when object storage and the database answer.

    The video platform is not required: uploads are accepted while it is
    down and verified later.
    """
    results = await _probe_all(factory)
    checks = {name: result.healthy for name, result in results.items()}
    ready = checks["blob_storage"] and checks["document_db"]
    return ReadinessResponse(ready=ready, checks=checks)
