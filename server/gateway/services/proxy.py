# ─────────────────────────────────────────────────────────────────────────────
# API Proxy — generic credentialed pass-through to registered upstreams
# ─────────────────────────────────────────────────────────────────────────────


import re
from dataclasses import dataclass

import structlog

from gateway.config import UpstreamCredentials
from gateway.exceptions import ClientError
from gateway.upstream.client import UpstreamClient, UpstreamResponse
from gateway.upstream.protocol import ProxyRequestContext, ProxyService
from gateway.upstream.registry import ServiceRegistry

logger = structlog.get_logger(__name__)

_ENDPOINT_PATH = re.compile(r"[A-Za-z0-9_\-.]+(/[A-Za-z0-9_\-.]+)*")

# Inbound headers that are safe to pass upstream.
FORWARDED_HEADERS: tuple[str, ...] = ("accept", "accept-language")


@dataclass(frozen=True)
class ProxyTarget:
    service: ProxyService
    endpoint: str
    secret: str


def validate_endpoint(endpoint: str) -> str:
    """Relative path segments only: no scheme, no query, no traversal."""
    if not _ENDPOINT_PATH.fullmatch(endpoint) or ".." in endpoint.split("/"):
        raise ClientError(f"Invalid endpoint: {endpoint}")
    return endpoint


class ApiProxy:
    """Resolves a (service, endpoint) pair and forwards the request."""

    def __init__(
        self,
        upstream: UpstreamClient,
        credentials: UpstreamCredentials,
        registry: ServiceRegistry,
    ) -> None:
        self._upstream = upstream
        self._credentials = credentials
        self._registry = registry

    def resolve(self, service: str | None, endpoint: str | None) -> ProxyTarget:
        """Check everything that needs no network: params, service, credential."""
        if not service or not endpoint:
            raise ClientError("Missing required parameters: service and endpoint")
        strategy = self._registry.get(service)
        validate_endpoint(endpoint)
        return ProxyTarget(
            service=strategy,
            endpoint=endpoint,
            secret=self._credentials.require(service),
        )

    async def forward(self, target: ProxyTarget, ctx: ProxyRequestContext) -> UpstreamResponse:
        outbound = target.service.build_request(ctx, target.secret)
        logger.info(
            "proxy_forward",
            service=ctx.service,
            endpoint=ctx.endpoint,
            method=ctx.method,
            client_ip=ctx.client_ip,
        )
        response = await self._upstream.request(
            ctx.service,
            outbound.method,
            outbound.url,
            params=outbound.params,
            headers=outbound.headers,
            json=outbound.json,
        )
        return UpstreamResponse(
            status_code=response.status_code,
            payload=target.service.shape_response(response.payload),
        )
