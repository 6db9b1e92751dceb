# ─────────────────────────────────────────────────────────────────────────────
# Response Shaping — reduce raw upstream JSON to what the client may see
# ─────────────────────────────────────────────────────────────────────────────
# Pure functions: same payload in, same model/dict out, no I/O. Upstream
# payloads that report failure in-band raise UpstreamFailureError.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import copy
from collections import Counter
from datetime import UTC, datetime
from typing import Any

from gateway.exceptions import UpstreamFailureError
from gateway.schemas import (
    CurrentConditions,
    CurrentWeather,
    CurrentWeatherResponse,
    DailySummary,
    ForecastDay,
    ForecastResponse,
    ForecastSlot,
    GeocodedLocation,
    GeocodeResponse,
    LocationSearchResponse,
    NearbyPlace,
    NearbySearchResponse,
    PlaceSummary,
    ReverseGeocodedLocation,
    ReverseGeocodeResponse,
    WeatherPlace,
)
from gateway.validation import Coordinates

MAX_SEARCH_RESULTS = 10
MAX_NEARBY_RESULTS = 15
MAX_PLACE_TYPES = 3

ESSENTIAL_ADDRESS_TYPES: tuple[str, ...] = (
    "country",
    "administrative_area_level_1",
    "locality",
    "postal_code",
)

# Forecast slots in this UTC hour range count as daytime when picking an icon.
_DAYTIME_HOURS = range(8, 19)

# Fields dropped from generic-proxy responses.
_MAPS_RESULT_REDACTIONS = ("business_status", "plus_code")
_OPENAI_REDACTIONS = ("usage",)


# ── Location ─────────────────────────────────────────────────────────────────


def _results(payload: dict[str, Any]) -> list[dict[str, Any]]:
    return payload.get("results") or []


def _lat_lng(place: dict[str, Any]) -> tuple[float, float]:
    location = place["geometry"]["location"]
    return location["lat"], location["lng"]


def shape_place_search(payload: dict[str, Any]) -> LocationSearchResponse:
    locations = []
    for place in _results(payload)[:MAX_SEARCH_RESULTS]:
        lat, lng = _lat_lng(place)
        locations.append(
            PlaceSummary(
                id=place["place_id"],
                name=place["name"],
                address=place.get("formatted_address"),
                latitude=lat,
                longitude=lng,
                types=(place.get("types") or [])[:MAX_PLACE_TYPES],
            )
        )
    return LocationSearchResponse(locations=locations)


def _first_geocode_result(payload: dict[str, Any], failure: str) -> dict[str, Any]:
    status = payload.get("status")
    results = _results(payload)
    if status != "OK" or not results:
        raise UpstreamFailureError(failure, status_code=400, details=status)
    return results[0]


def shape_geocode(payload: dict[str, Any]) -> GeocodeResponse:
    result = _first_geocode_result(payload, "Geocoding failed")
    lat, lng = _lat_lng(result)
    return GeocodeResponse(
        location=GeocodedLocation(
            latitude=lat,
            longitude=lng,
            formatted_address=result.get("formatted_address"),
            place_id=result.get("place_id"),
        )
    )


def shape_reverse_geocode(payload: dict[str, Any], at: Coordinates) -> ReverseGeocodeResponse:
    result = _first_geocode_result(payload, "Reverse geocoding failed")

    components: dict[str, str] = {}
    for component in result.get("address_components") or []:
        for component_type in component.get("types") or []:
            if component_type in ESSENTIAL_ADDRESS_TYPES:
                components[component_type] = component["long_name"]

    return ReverseGeocodeResponse(
        location=ReverseGeocodedLocation(
            formatted_address=result.get("formatted_address"),
            place_id=result.get("place_id"),
            address_components=components,
            latitude=at.latitude,
            longitude=at.longitude,
        )
    )


def shape_nearby(payload: dict[str, Any]) -> NearbySearchResponse:
    places = []
    for place in _results(payload)[:MAX_NEARBY_RESULTS]:
        lat, lng = _lat_lng(place)
        places.append(
            NearbyPlace(
                id=place["place_id"],
                name=place["name"],
                latitude=lat,
                longitude=lng,
                address=place.get("vicinity"),
                types=(place.get("types") or [])[:MAX_PLACE_TYPES],
                rating=place.get("rating"),
            )
        )
    return NearbySearchResponse(places=places)


# ── Weather ──────────────────────────────────────────────────────────────────


def _cod_ok(payload: dict[str, Any]) -> bool:
    # /weather answers cod as int 200, /forecast as the string "200".
    return str(payload.get("cod")) == "200"


def _first_condition(item: dict[str, Any]) -> dict[str, Any]:
    conditions = item.get("weather") or [{}]
    return conditions[0]


def shape_current_weather(payload: dict[str, Any]) -> CurrentWeatherResponse:
    if not _cod_ok(payload):
        raise UpstreamFailureError(
            "Weather data not found", status_code=404, details=payload.get("message")
        )

    sys_info = payload.get("sys") or {}
    coord = payload.get("coord") or {}
    main = payload.get("main") or {}
    wind = payload.get("wind") or {}
    condition = _first_condition(payload)

    return CurrentWeatherResponse(
        weather=CurrentWeather(
            location=WeatherPlace(
                name=payload.get("name"),
                country=sys_info.get("country"),
                latitude=coord.get("lat"),
                longitude=coord.get("lon"),
            ),
            current=CurrentConditions(
                temperature=main.get("temp"),
                feels_like=main.get("feels_like"),
                humidity=main.get("humidity"),
                pressure=main.get("pressure"),
                wind_speed=wind.get("speed"),
                wind_direction=wind.get("deg"),
                description=condition.get("description"),
                icon=condition.get("icon"),
                condition=condition.get("main"),
                sunrise=sys_info.get("sunrise"),
                sunset=sys_info.get("sunset"),
                timestamp=payload.get("dt"),
            ),
        )
    )


def _forecast_slot(item: dict[str, Any]) -> tuple[datetime, ForecastSlot]:
    at = datetime.fromtimestamp(item["dt"], tz=UTC)
    main = item.get("main") or {}
    condition = _first_condition(item)
    slot = ForecastSlot(
        time=at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        temperature=main["temp"],
        feels_like=main.get("feels_like"),
        description=condition.get("description"),
        icon=condition.get("icon"),
        condition=condition.get("main"),
    )
    return at, slot


def _summarize_day(slots: list[tuple[datetime, ForecastSlot]]) -> DailySummary:
    temperatures = [slot.temperature for _, slot in slots]

    # most_common keeps first-seen order among equal counts.
    conditions = Counter(slot.condition or "" for _, slot in slots)
    condition = conditions.most_common(1)[0][0]

    daytime = [slot for at, slot in slots if at.hour in _DAYTIME_HOURS]
    icon = daytime[len(daytime) // 2].icon if daytime else slots[0][1].icon

    return DailySummary(
        min_temperature=min(temperatures),
        max_temperature=max(temperatures),
        avg_temperature=sum(temperatures) / len(temperatures),
        condition=condition,
        icon=icon,
    )


def shape_forecast(payload: dict[str, Any]) -> ForecastResponse:
    """Group 3-hour slots by UTC day, summarize each, keep every other slot."""
    if not _cod_ok(payload):
        raise UpstreamFailureError(
            "Forecast data not found", status_code=404, details=payload.get("message")
        )

    by_day: dict[str, list[tuple[datetime, ForecastSlot]]] = {}
    for item in payload.get("list") or []:
        at, slot = _forecast_slot(item)
        by_day.setdefault(at.date().isoformat(), []).append((at, slot))

    forecast = [
        ForecastDay(
            date=day,
            summary=_summarize_day(slots),
            hourly=[slot for _, slot in slots[::2]],
        )
        for day, slots in by_day.items()
    ]

    city = payload.get("city") or {}
    coord = city.get("coord") or {}
    return ForecastResponse(
        location=WeatherPlace(
            name=city.get("name"),
            country=city.get("country"),
            latitude=coord.get("lat"),
            longitude=coord.get("lon"),
        ),
        forecast=forecast,
    )


# ── Generic proxy ────────────────────────────────────────────────────────────


def redact_maps_response(payload: Any) -> Any:
    """Drop billing/internal fields from each Places/Geocoding result."""
    if not isinstance(payload, dict):
        return payload
    shaped = copy.deepcopy(payload)
    for result in shaped.get("results") or []:
        if isinstance(result, dict):
            for field in _MAPS_RESULT_REDACTIONS:
                result.pop(field, None)
    return shaped


def redact_openai_response(payload: Any) -> Any:
    """Drop token usage counters (billing detail) from a completion."""
    if not isinstance(payload, dict):
        return payload
    return {k: v for k, v in payload.items() if k not in _OPENAI_REDACTIONS}
