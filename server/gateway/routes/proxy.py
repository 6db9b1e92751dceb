# ─────────────────────────────────────────────────────────────────────────────
# Generic API proxy — GET/POST /api-proxy?service=&endpoint=
# ─────────────────────────────────────────────────────────────────────────────
# Order matters: params/service/credential → rate limit → method/endpoint →
# body → one upstream call. Nothing after a failed step runs.
# ─────────────────────────────────────────────────────────────────────────────


import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from gateway.dependencies import get_api_proxy, get_metrics, get_rate_limiter
from gateway.exceptions import ClientError
from gateway.rate_limit import client_ip, edge_rate_limit, enforce_rate_limit, limiter
from gateway.schemas import ERROR_RESPONSES
from gateway.services.metrics import ProxyMetrics
from gateway.services.proxy import FORWARDED_HEADERS, ApiProxy
from gateway.throttle import WindowRateLimiter
from gateway.upstream.protocol import ProxyRequestContext

router = APIRouter(responses=ERROR_RESPONSES)

_ROUTING_PARAMS = frozenset({"service", "endpoint"})


async def read_json_body(request: Request) -> dict[str, Any] | None:
    """JSON object body for non-GET requests with a JSON content type, else None."""
    if request.method == "GET":
        return None
    if "application/json" not in request.headers.get("content-type", ""):
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        body = json.loads(raw)
    except ValueError:
        raise ClientError("Invalid JSON body") from None
    if not isinstance(body, dict):
        raise ClientError("Request body must be a JSON object")
    return body


@router.api_route("", methods=["GET", "POST"])
@limiter.limit(edge_rate_limit)
async def proxy(
    request: Request,
    service: str | None = None,
    endpoint: str | None = None,
    api_proxy: ApiProxy = Depends(get_api_proxy),
    rate_limiter: WindowRateLimiter = Depends(get_rate_limiter),
    metrics: ProxyMetrics = Depends(get_metrics),
) -> JSONResponse:
    """Forward to a registered upstream; status is relayed verbatim."""
    target = api_proxy.resolve(service, endpoint)
    name = target.service.name

    enforce_rate_limit(rate_limiter, f"proxy.{name}", request, metrics)
    target.service.validate(request.method, target.endpoint)

    ctx = ProxyRequestContext(
        service=name,
        endpoint=target.endpoint,
        method=request.method,
        query_params={
            k: v for k, v in request.query_params.items() if k not in _ROUTING_PARAMS
        },
        body=await read_json_body(request),
        client_ip=client_ip(request),
        forward_headers={
            header: request.headers[header]
            for header in FORWARDED_HEADERS
            if header in request.headers
        },
    )
    result = await api_proxy.forward(target, ctx)
    return JSONResponse(status_code=result.status_code, content=result.payload)
