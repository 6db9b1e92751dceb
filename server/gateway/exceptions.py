# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)

RETRY_AFTER_SECONDS = 60

_GENERIC_500_BODY = {
    "error": "Internal server error",
    "message": "An error occurred while processing your request",
}


# ── Exception hierarchy ──────────────────────────────────────────────────────


class GatewayError(Exception):
    """Base exception for all gateway errors.

    message/details end up verbatim in the JSON error body, so never put
    secrets or stack traces in them.
    """

    def __init__(self, message: str, status_code: int = 500, details: str | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ClientError(GatewayError):
    """Missing or invalid request parameters."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UnsupportedServiceError(ClientError):
    """The generic proxy was asked for a service it does not know."""

    def __init__(self, service: str):
        super().__init__(f"Unsupported service: {service}")


class EndpointNotFoundError(GatewayError):
    """Known service, but the endpoint is not on its allow-list."""

    def __init__(self, message: str = "Unknown endpoint"):
        super().__init__(message, status_code=404)


class MethodNotAllowedError(GatewayError):
    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message, status_code=405)


class RateLimitedError(GatewayError):
    """Raised when a client exhausts its window for an endpoint.

    The handler adds Retry-After to the 429 response.
    """

    def __init__(self, bucket: str, retry_after_seconds: int = RETRY_AFTER_SECONDS):
        self.bucket = bucket
        self.retry_after_seconds = retry_after_seconds
        super().__init__("Rate limit exceeded. Please try again later.", status_code=429)


class ServerMisconfigurationError(GatewayError):
    """A credential needed for the requested service is not configured."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"API key not configured for service: {service}", status_code=500)


class UpstreamFailureError(GatewayError):
    """Upstream answered, but signalled failure in its payload (e.g. geocoding status)."""

    def __init__(self, message: str, status_code: int = 400, details: Any = None):
        super().__init__(
            message,
            status_code=status_code,
            details=None if details is None else str(details),
        )


class UpstreamUnavailableError(GatewayError):
    """Transport-level failure talking to the upstream (DNS, refused, reset)."""

    def __init__(self, service: str):
        self.service = service
        super().__init__("Upstream service unavailable", status_code=502)


class UpstreamTimeoutError(GatewayError):
    def __init__(self, service: str, timeout_s: float):
        self.service = service
        self.timeout_s = timeout_s
        super().__init__(f"Upstream service timed out after {timeout_s}s", status_code=504)


# ── Handler registration ────────────────────────────────────────────────────

_HTTP_MESSAGES = {
    404: "Unknown endpoint",
    405: "Method not allowed",
}


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Routes and services raise GatewayError subclasses; these handlers turn
    them into the {error, message?, details?} body. Anything else becomes a
    generic 500 with the details only in the log.
    """

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
        logger.warning(
            "rate_limited",
            bucket=exc.bucket,
            path=request.url.path,
            retry_after=exc.retry_after_seconds,
        )
        return JSONResponse(
            status_code=429,
            content=exc.to_body(),
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "gateway_error",
            error=exc.message,
            error_type=type(exc).__name__,
            status=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Router-level 404/405 use the same body shape as everything else.
        message = _HTTP_MESSAGES.get(exc.status_code, str(exc.detail))
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), path=request.url.path, exc_info=True)
        return JSONResponse(status_code=500, content=dict(_GENERIC_500_BODY))
