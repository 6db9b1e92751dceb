# Optional shared-key gate in front of the gateway. Constant-time comparison;
# disabled entirely when API_KEY is empty. Probes and metrics stay open.


import secrets
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger(__name__)

_EXEMPT_PATHS: frozenset[str] = frozenset(
    {
        "/health",
        "/health/ready",
        "/metrics",
        "/metrics/prometheus",
    }
)


def _provided_key(request: Request) -> str:
    """X-API-Key, or the Supabase-style `apikey` header browsers already send."""
    return request.headers.get("x-api-key") or request.headers.get("apikey") or ""


class APIKeyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: Any, *, api_key: str) -> None:
        super().__init__(app)
        self._api_key = api_key

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # CORS preflights carry no custom headers.
        if request.method == "OPTIONS" or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        provided = _provided_key(request)
        if not provided or not secrets.compare_digest(provided, self._api_key):
            logger.warning("auth_rejected", path=request.url.path, method=request.method)
            return JSONResponse(status_code=401, content={"error": "Invalid or missing API key"})

        return await call_next(request)
