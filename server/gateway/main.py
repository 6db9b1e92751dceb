# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn gateway.main:create_app --factory --host 0.0.0.0 --port 8080

import os
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from gateway.auth import APIKeyMiddleware
from gateway.config import SERVICE_NAMES, Settings, get_settings
from gateway.exceptions import register_exception_handlers
from gateway.logging_config import configure_logging
from gateway.middleware import RequestContextMiddleware
from gateway.rate_limit import limiter
from gateway.routes import health, location, proxy, weather
from gateway.routes import prometheus as prometheus_routes
from gateway.services.location import LocationService
from gateway.services.metrics import ProxyMetrics
from gateway.services.proxy import ApiProxy
from gateway.services.weather import WeatherService
from gateway.throttle import WindowRateLimiter
from gateway.upstream import UpstreamClient, build_default_registry

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider

logger = structlog.get_logger(__name__)

ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type", "x-api-key"]


def _parse_retry_after(rate_limit: str) -> str:
    """Extract window duration from a slowapi rate limit string."""
    windows = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
    try:
        _, window = rate_limit.strip().split("/")
        return str(windows.get(window.strip(), 60))
    except (ValueError, AttributeError):
        return "60"


async def _edge_rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 for the coarse per-IP limit, same body shape as every other error."""
    retry_after = _parse_retry_after(request.app.state.settings.edge_rate_limit)
    logger.warning("edge_rate_limit_exceeded", path=request.url.path, detail=str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded. Please try again later.", "details": exc.detail},
        headers={"Retry-After": retry_after},
    )


def _configure_otel(exporter_type: str) -> "TracerProvider | None":
    """Configure OpenTelemetry tracing (console or gcp)."""
    from opentelemetry import trace
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider()

    if exporter_type == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter_type == "gcp":
        try:
            from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter

            provider.add_span_processor(BatchSpanProcessor(CloudTraceSpanExporter()))  # type: ignore[no-untyped-call]
        except ImportError:
            logger.warning("gcp_trace_exporter_not_available")
            return None
    else:
        logger.warning("unknown_otel_exporter", exporter=exporter_type)
        return None

    trace.set_tracer_provider(provider)
    logger.info("otel_configured", exporter=exporter_type)
    return provider


def init_app_state(
    app: FastAPI,
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    clock: Callable[[], float] = time.time,
) -> None:
    """Build the per-process objects and park them on app.state.

    Called by the lifespan; tests call it directly with a mocked transport
    and a fake clock.
    """
    metrics = ProxyMetrics()
    credentials = settings.upstream_credentials()
    if http_client is None:
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.upstream_timeout_seconds),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
        )
    upstream = UpstreamClient(http_client, metrics=metrics)

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.credentials = credentials
    app.state.rate_limiter = WindowRateLimiter(clock=clock)
    app.state.upstream_client = upstream
    app.state.location_service = LocationService(upstream, credentials)
    app.state.weather_service = WeatherService(upstream, credentials)
    app.state.api_proxy = ApiProxy(upstream, credentials, build_default_registry())

    missing = [name for name in SERVICE_NAMES if name not in credentials]
    if missing:
        logger.warning("upstream_credentials_missing", services=missing)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared upstream client on startup, close it on shutdown."""
    settings: Settings = app.state.settings

    otel_provider = None
    otel_exporter = os.environ.get("OTEL_EXPORTER", "")
    if otel_exporter:
        otel_provider = _configure_otel(otel_exporter)

    init_app_state(app, settings)

    yield

    await app.state.upstream_client.aclose()

    # Flush spans before the instance is torn down.
    if otel_provider is not None:
        otel_provider.shutdown()


def _parse_origins(allowed_origins: str) -> list[str]:
    """Parse comma-separated CORS origins. "*" → all; empty → deny all."""
    origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
    if not origins:
        logger.warning("cors_no_origins_configured", hint="Cross-origin requests will be rejected.")
    elif "*" in origins:
        logger.warning(
            "cors_all_origins_allowed",
            hint="Set ALLOWED_ORIGINS to the app's domain in production.",
        )
        return ["*"]
    return origins


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory. Invoked by: uvicorn gateway.main:create_app --factory"""
    settings = settings or get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Upstream API Gateway",
        description="Rate-limited proxy for maps, weather, completion and photo APIs",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _edge_rate_limit_handler)  # type: ignore[arg-type]

    # Middleware order (Starlette applies in reverse): CORS → APIKey → RequestContext
    app.add_middleware(RequestContextMiddleware)

    api_key_value = settings.api_key.get_secret_value()
    if api_key_value:
        app.add_middleware(APIKeyMiddleware, api_key=api_key_value)
        logger.info("api_key_auth_enabled")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_parse_origins(settings.allowed_origins),
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(prometheus_routes.router, tags=["prometheus"])
    if settings.enable_location_service:
        app.include_router(location.router, prefix="/location", tags=["location"])
    if settings.enable_weather_service:
        app.include_router(weather.router, prefix="/weather", tags=["weather"])
    if settings.enable_api_proxy:
        app.include_router(proxy.router, prefix="/api-proxy", tags=["proxy"])

    return app
