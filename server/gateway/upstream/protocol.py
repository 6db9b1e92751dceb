# ─────────────────────────────────────────────────────────────────────────────
# Proxy Service Protocol — what the generic proxy needs from each upstream
# ─────────────────────────────────────────────────────────────────────────────
# Each supported upstream (openai, google_maps, weather, unsplash) is one
# strategy object: validate → build_request → shape_response. The registry
# maps service names to these; the proxy never branches on the name.
# ─────────────────────────────────────────────────────────────────────────────

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class ProxyRequestContext:
    """Everything known about one inbound proxy request. Discarded after the response."""

    service: str
    endpoint: str
    method: str
    query_params: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] | None = None
    client_ip: str = "unknown"
    # Only the inbound headers that may be forwarded (Accept, Accept-Language).
    forward_headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UpstreamRequest:
    method: str
    url: str
    params: dict[str, str]
    headers: dict[str, str]
    json: dict[str, Any] | None = None


@runtime_checkable
class ProxyService(Protocol):
    @property
    def name(self) -> str: ...

    def validate(self, method: str, endpoint: str) -> None: ...

    def build_request(self, ctx: ProxyRequestContext, secret: str) -> UpstreamRequest: ...

    def shape_response(self, payload: Any) -> Any: ...
