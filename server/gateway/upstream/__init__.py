"""Upstream access — HTTP client, proxy strategies, and their registry."""

from gateway.upstream.client import UpstreamClient, UpstreamResponse
from gateway.upstream.protocol import ProxyRequestContext, ProxyService, UpstreamRequest
from gateway.upstream.registry import ServiceRegistry, build_default_registry

__all__ = [
    "ProxyRequestContext",
    "ProxyService",
    "ServiceRegistry",
    "UpstreamClient",
    "UpstreamRequest",
    "UpstreamResponse",
    "build_default_registry",
]
