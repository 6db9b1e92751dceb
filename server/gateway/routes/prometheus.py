# ─────────────────────────────────────────────────────────────────────────────
# Prometheus Metrics Endpoint — text exposition format
# ─────────────────────────────────────────────────────────────────────────────
# GET /metrics/prometheus → text/plain Prometheus format
# Bridges ProxyMetrics → prometheus-client gauges on each scrape.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from gateway.config import SERVICE_NAMES, UpstreamCredentials
from gateway.dependencies import get_credentials, get_metrics
from gateway.services.metrics import ProxyMetrics

router = APIRouter()

# Custom registry keeps default process/platform collectors out.
_registry = CollectorRegistry()

_upstream_requests = Gauge(
    "gateway_upstream_requests",
    "Upstream calls issued since process start",
    ["service"],
    registry=_registry,
)

_upstream_errors = Gauge(
    "gateway_upstream_errors",
    "Upstream calls that failed or returned >= 400",
    ["service"],
    registry=_registry,
)

_rate_limited = Gauge(
    "gateway_rate_limited_requests",
    "Requests refused by the per-endpoint limiter",
    ["bucket"],
    registry=_registry,
)

_upstream_latency = Gauge(
    "gateway_upstream_latency_ms",
    "Upstream latency over the last 1000 calls",
    ["stat"],
    registry=_registry,
)

_service_configured = Gauge(
    "gateway_service_configured",
    "Whether a credential is configured for the upstream (1) or not (0)",
    ["service"],
    registry=_registry,
)


def _sync_metrics(metrics: ProxyMetrics, credentials: UpstreamCredentials) -> None:
    data = metrics.to_dict()

    for service, count in data["requests_by_service"].items():
        _upstream_requests.labels(service=service).set(count)
    for service, count in data["errors_by_service"].items():
        _upstream_errors.labels(service=service).set(count)
    for bucket, count in data["rate_limited_by_bucket"].items():
        _rate_limited.labels(bucket=bucket).set(count)

    for stat in ("p50", "p95", "mean"):
        _upstream_latency.labels(stat=stat).set(data[f"latency_{stat}_ms"])

    for service in SERVICE_NAMES:
        _service_configured.labels(service=service).set(1 if service in credentials else 0)


@router.get("/metrics/prometheus")
async def prometheus_metrics(
    metrics: ProxyMetrics = Depends(get_metrics),
    credentials: UpstreamCredentials = Depends(get_credentials),
) -> Response:
    _sync_metrics(metrics, credentials)
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
