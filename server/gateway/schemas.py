# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Response Schemas
# ─────────────────────────────────────────────────────────────────────────────
# The browser client expects camelCase keys; models use snake_case attributes
# with a camelCase alias generator. FastAPI serializes response_model by alias.
# ─────────────────────────────────────────────────────────────────────────────



from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
    message: str | None = None
    details: str | None = None


ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in (400, 429, 500, 502, 504)
}


# ── Location ─────────────────────────────────────────────────────────────────


class PlaceSummary(CamelModel):
    """One text-search hit."""

    id: str
    name: str
    address: str | None = None
    latitude: float
    longitude: float
    types: list[str] = Field(default_factory=list, max_length=3)


class LocationSearchResponse(CamelModel):
    locations: list[PlaceSummary] = Field(default_factory=list, max_length=10)


class GeocodedLocation(CamelModel):
    latitude: float
    longitude: float
    formatted_address: str | None = None
    place_id: str | None = None


class GeocodeResponse(CamelModel):
    location: GeocodedLocation


class ReverseGeocodedLocation(CamelModel):
    formatted_address: str | None = None
    place_id: str | None = None
    # Keyed by Google component type (country, locality, ...), not camelCased.
    address_components: dict[str, str] = Field(default_factory=dict)
    latitude: float
    longitude: float


class ReverseGeocodeResponse(CamelModel):
    location: ReverseGeocodedLocation


class NearbyPlace(CamelModel):
    id: str
    name: str
    latitude: float
    longitude: float
    address: str | None = None
    types: list[str] = Field(default_factory=list, max_length=3)
    rating: float | None = None


class NearbySearchResponse(CamelModel):
    places: list[NearbyPlace] = Field(default_factory=list, max_length=15)


# ── Weather ──────────────────────────────────────────────────────────────────


class WeatherPlace(CamelModel):
    name: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class CurrentConditions(CamelModel):
    temperature: float | None = None
    feels_like: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    wind_speed: float | None = None
    wind_direction: float | None = None
    description: str | None = None
    icon: str | None = None
    condition: str | None = None
    sunrise: int | None = None
    sunset: int | None = None
    timestamp: int | None = None


class CurrentWeather(CamelModel):
    location: WeatherPlace
    current: CurrentConditions


class CurrentWeatherResponse(CamelModel):
    weather: CurrentWeather


class ForecastSlot(CamelModel):
    """One 3-hour forecast point."""

    time: str
    temperature: float
    feels_like: float | None = None
    description: str | None = None
    icon: str | None = None
    condition: str | None = None


class DailySummary(CamelModel):
    min_temperature: float
    max_temperature: float
    avg_temperature: float
    condition: str
    icon: str | None = None


class ForecastDay(CamelModel):
    date: str
    summary: DailySummary
    hourly: list[ForecastSlot]


class ForecastResponse(CamelModel):
    location: WeatherPlace
    forecast: list[ForecastDay]


# ── Ops ──────────────────────────────────────────────────────────────────────


class LivenessResponse(BaseModel):
    """Liveness probe body."""

    status: str = "ok"


class ReadinessResponse(BaseModel):
    """Readiness probe body."""

    status: str  # "ready" or "not_ready"
    services_configured: list[str]
    upstream_client_open: bool


class MetricsSnapshot(BaseModel):
    """Shape of GET /metrics (ProxyMetrics.to_dict())."""

    upstream_requests_total: int = Field(..., ge=0)
    upstream_errors_total: int = Field(..., ge=0)
    upstream_failures_total: int = Field(..., ge=0)
    rate_limited_total: int = Field(..., ge=0)
    requests_by_service: dict[str, int]
    errors_by_service: dict[str, int]
    rate_limited_by_bucket: dict[str, int]
    latency_p50_ms: float
    latency_p95_ms: float
    latency_mean_ms: float
    uptime_seconds: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")
