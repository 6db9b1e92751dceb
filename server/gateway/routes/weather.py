# ─────────────────────────────────────────────────────────────────────────────
# Weather routes — /weather/{current,forecast}
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request

from gateway.dependencies import get_weather_service
from gateway.rate_limit import edge_rate_limit, limiter, rate_limited
from gateway.schemas import ERROR_RESPONSES, CurrentWeatherResponse, ForecastResponse
from gateway.services.weather import WeatherService
from gateway.validation import parse_days, parse_weather_location

router = APIRouter(responses=ERROR_RESPONSES)


@router.get(
    "/current",
    response_model=CurrentWeatherResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limited("weather.current"))],
)
@limiter.limit(edge_rate_limit)
async def current(
    request: Request,
    latitude: str | None = None,
    longitude: str | None = None,
    city: str | None = None,
    weather: WeatherService = Depends(get_weather_service),
) -> CurrentWeatherResponse:
    """Current conditions by coordinates or city name."""
    return await weather.current(parse_weather_location(latitude, longitude, city))


@router.get(
    "/forecast",
    response_model=ForecastResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limited("weather.forecast"))],
)
@limiter.limit(edge_rate_limit)
async def forecast(
    request: Request,
    latitude: str | None = None,
    longitude: str | None = None,
    city: str | None = None,
    days: str | None = None,
    weather: WeatherService = Depends(get_weather_service),
) -> ForecastResponse:
    """Daily summaries for 1-7 days (clamped, default 5)."""
    location = parse_weather_location(latitude, longitude, city)
    return await weather.forecast(location, parse_days(days))
