# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiting — edge limiter (slowapi) + per-endpoint window gate
# ─────────────────────────────────────────────────────────────────────────────
# Two layers, same as any public proxy needs:
#   * limiter:        coarse per-IP slowapi limit on every route (DoS guard).
#   * rate_limited(): FastAPI dependency that charges one request against the
#                      endpoint's WindowRateLimiter bucket before validation.
# Kept in its own module so routes and main.py can both import it.
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Awaitable, Callable

from fastapi import Depends
from slowapi import Limiter
from starlette.requests import Request

from gateway.config import get_settings
from gateway.dependencies import get_metrics, get_rate_limiter
from gateway.exceptions import RateLimitedError
from gateway.services.metrics import ProxyMetrics
from gateway.throttle import WindowRateLimiter


def client_ip(request: Request) -> str:
    """Client identifier for rate limiting.

    The platform load balancer sets X-Forwarded-For; the left-most entry is
    the original client. Falls back to the socket peer, then "unknown".
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def edge_rate_limit() -> str:
    """slowapi reads the limit lazily so EDGE_RATE_LIMIT applies per process."""
    return get_settings().edge_rate_limit


limiter = Limiter(key_func=client_ip)


def enforce_rate_limit(
    rate_limiter: WindowRateLimiter,
    bucket: str,
    request: Request,
    metrics: ProxyMetrics | None = None,
) -> None:
    """Charge one request to bucket for this client or raise RateLimitedError."""
    if rate_limiter.check(bucket, client_ip(request)):
        return
    if metrics is not None:
        metrics.record_rate_limited(bucket)
    raise RateLimitedError(bucket)


def rate_limited(bucket: str) -> Callable[..., Awaitable[None]]:
    """Dependency factory: Depends(rate_limited("location.search"))."""

    async def _gate(
        request: Request,
        rate_limiter: WindowRateLimiter = Depends(get_rate_limiter),
        metrics: ProxyMetrics = Depends(get_metrics),
    ) -> None:
        enforce_rate_limit(rate_limiter, bucket, request, metrics)

    return _gate
