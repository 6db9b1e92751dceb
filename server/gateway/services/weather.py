# ─────────────────────────────────────────────────────────────────────────────
# Weather Service — OpenWeatherMap current conditions and 3-hourly forecast
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any

from gateway.config import UpstreamCredentials
from gateway.exceptions import UpstreamFailureError
from gateway.schemas import CurrentWeatherResponse, ForecastResponse
from gateway.shaping import shape_current_weather, shape_forecast
from gateway.upstream.client import UpstreamClient
from gateway.validation import WeatherLocation

OPENWEATHER_API_BASE = "https://api.openweathermap.org/data/2.5"
SERVICE = "weather"

# The forecast endpoint returns one slot per 3 hours.
SLOTS_PER_DAY = 8


class WeatherService:
    def __init__(self, upstream: UpstreamClient, credentials: UpstreamCredentials) -> None:
        self._upstream = upstream
        self._credentials = credentials

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        appid = self._credentials.require(SERVICE)
        response = await self._upstream.request(
            SERVICE,
            "GET",
            f"{OPENWEATHER_API_BASE}/{path}",
            params={**params, "units": "metric", "lang": "en", "appid": appid},
        )
        # OpenWeatherMap reports failures in-band (cod/message) even on 4xx,
        # so the body is shaped regardless of the HTTP status.
        if not isinstance(response.payload, dict):
            raise UpstreamFailureError("Unexpected response from weather provider", 502)
        return response.payload

    async def current(self, location: WeatherLocation) -> CurrentWeatherResponse:
        payload = await self._get("weather", location.as_query())
        return shape_current_weather(payload)

    async def forecast(self, location: WeatherLocation, days: int) -> ForecastResponse:
        params = {**location.as_query(), "cnt": str(days * SLOTS_PER_DAY)}
        payload = await self._get("forecast", params)
        return shape_forecast(payload)
