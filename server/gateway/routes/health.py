# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes — liveness, readiness, and metrics
# ─────────────────────────────────────────────────────────────────────────────
#   /health        → Liveness probe. Near-zero cost, always 200.
#   /health/ready  → Readiness probe. 503 once the upstream client is closed.
#   /metrics       → Upstream call counts, error counts, latency, refusals.
# ─────────────────────────────────────────────────────────────────────────────

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from gateway.config import UpstreamCredentials
from gateway.dependencies import get_credentials, get_metrics, get_upstream_client
from gateway.schemas import LivenessResponse, ReadinessResponse
from gateway.services.metrics import ProxyMetrics
from gateway.upstream.client import UpstreamClient

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe. No deps, no I/O."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    upstream: UpstreamClient = Depends(get_upstream_client),
    credentials: UpstreamCredentials = Depends(get_credentials),
) -> JSONResponse:
    """Readiness probe.

    Missing credentials do not make the instance unready (requests for
    those services fail individually with 500), but they are listed so a
    misconfigured deploy is visible.
    """
    ready = upstream.is_open
    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        services_configured=sorted(credentials),
        upstream_client_open=upstream.is_open,
    )
    return JSONResponse(status_code=200 if ready else 503, content=response.model_dump())


@router.get("/metrics")
async def metrics_endpoint(metrics: ProxyMetrics = Depends(get_metrics)) -> dict[str, Any]:
    return metrics.to_dict()
