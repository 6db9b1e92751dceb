# ─────────────────────────────────────────────────────────────────────────────
# Upstream Client — one outbound call per inbound request
# ─────────────────────────────────────────────────────────────────────────────
# Wraps the process-wide httpx.AsyncClient. No retries: a failed call is
# reported, never repeated. Every call is timed, traced and counted.
# ─────────────────────────────────────────────────────────────────────────────


import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from opentelemetry import trace

from gateway.exceptions import (
    UpstreamFailureError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from gateway.logging_config import redact_url
from gateway.services.metrics import ProxyMetrics

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    payload: Any


class UpstreamClient:
    """Issues upstream requests and decodes their JSON bodies."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        metrics: ProxyMetrics | None = None,
    ) -> None:
        self._http = http_client
        self._metrics = metrics

    @property
    def is_open(self) -> bool:
        return not self._http.is_closed

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        service: str,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> UpstreamResponse:
        with tracer.start_as_current_span("upstream_request") as span:
            span.set_attribute("upstream.service", service)
            span.set_attribute("http.method", method)

            start = time.perf_counter()
            try:
                response = await self._http.request(
                    method, url, params=params, headers=headers, json=json
                )
            except httpx.TimeoutException:
                self._record_failure(service, start)
                timeout = self._http.timeout.read or 0.0
                logger.warning("upstream_timeout", service=service, url=redact_url(url))
                raise UpstreamTimeoutError(service, timeout) from None
            except httpx.TransportError as e:
                self._record_failure(service, start)
                logger.warning(
                    "upstream_unavailable",
                    service=service,
                    url=redact_url(url),
                    error_type=type(e).__name__,
                )
                raise UpstreamUnavailableError(service) from e

            latency_ms = (time.perf_counter() - start) * 1000
            span.set_attribute("http.status_code", response.status_code)
            if self._metrics:
                self._metrics.record_upstream(service, response.status_code, latency_ms)

            logger.info(
                "upstream_response",
                service=service,
                method=method,
                url=redact_url(str(response.request.url)),
                status=response.status_code,
                duration_ms=round(latency_ms, 1),
            )

            try:
                payload = response.json()
            except ValueError:
                raise UpstreamFailureError(
                    "Upstream returned a non-JSON response", status_code=502
                ) from None

            return UpstreamResponse(status_code=response.status_code, payload=payload)

    def _record_failure(self, service: str, start: float) -> None:
        if self._metrics:
            self._metrics.record_upstream_failure(service, (time.perf_counter() - start) * 1000)
