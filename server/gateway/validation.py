# ─────────────────────────────────────────────────────────────────────────────
# Request Validation — parameter checks run before any upstream call
# ─────────────────────────────────────────────────────────────────────────────
# Rejecting validators raise ClientError (400) with the message the caller
# sees. Clamping helpers never reject: out-of-range values are pulled back
# into range, unparseable ones fall back to a default.
# ─────────────────────────────────────────────────────────────────────────────


import math
import re
from dataclasses import dataclass

from gateway.exceptions import ClientError

# Anything outside word chars, whitespace, comma, period, hyphen is dropped.
_UNSAFE_QUERY_CHARS = re.compile(r"[^\w\s,.-]", re.ASCII)
_CITY_NAME = re.compile(r"^[a-zA-Z\s,.-]+$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

MIN_RADIUS_M = 50
MAX_RADIUS_M = 5000
DEFAULT_RADIUS_M = 1000

MIN_FORECAST_DAYS = 1
MAX_FORECAST_DAYS = 7
DEFAULT_FORECAST_DAYS = 5

PLACE_TYPES: frozenset[str] = frozenset(
    {
        "restaurant",
        "cafe",
        "bar",
        "lodging",
        "store",
        "airport",
        "train_station",
        "bus_station",
        "park",
        "museum",
        "library",
        "university",
        "school",
        "hospital",
        "doctor",
        "pharmacy",
        "police",
        "post_office",
        "bank",
        "atm",
        "gas_station",
        "parking",
        "shopping_mall",
    }
)

INVALID_COORDINATES = (
    "Invalid coordinates. Latitude must be between -90 and 90, "
    "longitude between -180 and 180."
)
MISSING_COORDINATES = "Missing latitude or longitude parameters"
INVALID_CITY = (
    "Invalid city name. Must be between 2 and 50 characters and contain only "
    "letters, spaces, commas, periods, and hyphens."
)
MISSING_WEATHER_LOCATION = (
    "Missing location parameters. Provide either latitude/longitude or city name"
)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def as_latlng(self) -> str:
        """Google Maps "lat,lng" form."""
        return f"{self.latitude},{self.longitude}"


def sanitize_text(value: str) -> str:
    """Strip characters that have no business in a place/address query."""
    return _UNSAFE_QUERY_CHARS.sub("", value)


def validate_search_text(
    value: str | None, *, name: str = "query", min_length: int = 2, max_length: int = 100
) -> str:
    """Length-check a free-text search parameter, then sanitize it."""
    if not value or not (min_length <= len(value) <= max_length):
        raise ClientError(
            f"Invalid {name} parameter. Must be between {min_length} and {max_length} characters."
        )
    return sanitize_text(value)


def is_valid_coordinate_pair(latitude: float, longitude: float) -> bool:
    if math.isnan(latitude) or math.isnan(longitude):
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def parse_coordinates(latitude: str | None, longitude: str | None) -> Coordinates:
    """Parse and range-check a latitude/longitude query pair."""
    if not latitude or not longitude:
        raise ClientError(MISSING_COORDINATES)
    lat = _parse_float_prefix(latitude)
    lng = _parse_float_prefix(longitude)
    if lat is None or lng is None or not is_valid_coordinate_pair(lat, lng):
        raise ClientError(INVALID_COORDINATES)
    return Coordinates(lat, lng)


def _parse_float_prefix(raw: str) -> float | None:
    """Leading decimal number of raw ("40.7abc" → 40.7), or None."""
    match = _LEADING_FLOAT.match(raw)
    return float(match.group(1)) if match else None


def _parse_int_prefix(raw: str | None) -> int | None:
    """Leading integer of raw ("1500m" → 1500), or None."""
    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else None


def clamp_radius(radius: int) -> int:
    return max(MIN_RADIUS_M, min(MAX_RADIUS_M, radius))


def parse_radius(raw: str | None) -> int:
    parsed = _parse_int_prefix(raw)
    return clamp_radius(DEFAULT_RADIUS_M if parsed is None else parsed)


def normalize_place_type(value: str | None) -> str | None:
    """Allow-listed place type, or None when missing/unrecognized (never rejects)."""
    if value and value in PLACE_TYPES:
        return value
    return None


def is_valid_city_name(city: str) -> bool:
    return 2 <= len(city) <= 50 and bool(_CITY_NAME.match(city))


def validate_city(city: str) -> str:
    if not is_valid_city_name(city):
        raise ClientError(INVALID_CITY)
    return city


def clamp_days(days: int) -> int:
    return max(MIN_FORECAST_DAYS, min(MAX_FORECAST_DAYS, days))


def parse_days(raw: str | None) -> int:
    parsed = _parse_int_prefix(raw)
    return clamp_days(DEFAULT_FORECAST_DAYS if parsed is None else parsed)


@dataclass(frozen=True)
class WeatherLocation:
    """Either coordinates or a city; coordinates win when both are given."""

    coordinates: Coordinates | None = None
    city: str | None = None

    def as_query(self) -> dict[str, str]:
        if self.coordinates is not None:
            return {
                "lat": str(self.coordinates.latitude),
                "lon": str(self.coordinates.longitude),
            }
        return {"q": self.city or ""}


def parse_weather_location(
    latitude: str | None, longitude: str | None, city: str | None
) -> WeatherLocation:
    has_coordinates = bool(latitude and longitude)
    if not has_coordinates and not city:
        raise ClientError(MISSING_WEATHER_LOCATION)

    coordinates = parse_coordinates(latitude, longitude) if has_coordinates else None
    if city:
        validate_city(city)
    return WeatherLocation(coordinates=coordinates, city=city or None)
