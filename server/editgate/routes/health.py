# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes - liveness, readiness, metrics
# ─────────────────────────────────────────────────────────────────────────────
#   /health        → Liveness probe. Near-zero cost, always 200.
#   /health/ready  → Readiness. 503 until the provider token and the
#                    Basic-auth credentials are configured.
#   /metrics       → Edit request outcomes and latency percentiles.
# ─────────────────────────────────────────────────────────────────────────────

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from editgate.config import Settings
from editgate.dependencies import get_metrics, get_settings_dep
from editgate.schemas import LivenessResponse, ReadinessResponse
from editgate.services.metrics import EditMetrics

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe - is the process alive? No deps, no I/O."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(settings: Settings = Depends(get_settings_dep)) -> JSONResponse:
    """Readiness probe - can this instance serve edits?

    Checks configuration only; the provider itself is not contacted, so a
    provider outage does not pull the instance out of rotation.
    """
    provider_configured = settings.provider_configured
    auth_configured = settings.auth_configured
    ready = provider_configured and auth_configured

    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        provider_configured=provider_configured,
        auth_configured=auth_configured,
    )
    return JSONResponse(
        status_code=200 if ready else 503,
        content=response.model_dump(),
    )


@router.get("/metrics")
async def metrics_endpoint(
    metrics: EditMetrics = Depends(get_metrics),
) -> dict[str, Any]:
    """Edit metrics - outcomes, success rate, latency."""
    return metrics.to_dict()
