# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: init_app_state creates → app.state stores → Depends() injects.
# No global variables. Every dependency is explicit in endpoint signatures.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from gateway.config import UpstreamCredentials
from gateway.services.location import LocationService
from gateway.services.metrics import ProxyMetrics
from gateway.services.proxy import ApiProxy
from gateway.services.weather import WeatherService
from gateway.throttle import WindowRateLimiter
from gateway.upstream.client import UpstreamClient


def get_rate_limiter(request: Request) -> WindowRateLimiter:
    return request.app.state.rate_limiter  # type: ignore[no-any-return]


def get_metrics(request: Request) -> ProxyMetrics:
    return request.app.state.metrics  # type: ignore[no-any-return]


def get_upstream_client(request: Request) -> UpstreamClient:
    return request.app.state.upstream_client  # type: ignore[no-any-return]


def get_location_service(request: Request) -> LocationService:
    return request.app.state.location_service  # type: ignore[no-any-return]


def get_weather_service(request: Request) -> WeatherService:
    return request.app.state.weather_service  # type: ignore[no-any-return]


def get_api_proxy(request: Request) -> ApiProxy:
    return request.app.state.api_proxy  # type: ignore[no-any-return]


def get_credentials(request: Request) -> UpstreamCredentials:
    return request.app.state.credentials  # type: ignore[no-any-return]
