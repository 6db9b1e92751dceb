# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# Upstream HTTP is mocked with a respx Router mounted as the gateway's httpx
# transport: no network, and every outbound call is countable per route.
# The per-endpoint limiter gets a fake clock so windows can be advanced.
# ─────────────────────────────────────────────────────────────────────────────

from collections.abc import Iterator
from typing import Any

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from gateway.config import Settings
from gateway.main import create_app, init_app_state
from gateway.rate_limit import limiter


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides: Any) -> Settings:
    """Settings with every upstream configured; no .env, no JSON logs."""
    values: dict[str, Any] = {
        "openai_api_key": "sk-test-openai",
        "google_maps_api_key": "maps-test-key",
        "weather_api_key": "owm-test-key",
        "unsplash_api_key": "unsplash-test-key",
        "allowed_origins": "*",
        "log_json": False,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def build_client(settings: Settings, upstream: respx.Router, clock: FakeClock) -> TestClient:
    """App wired to the mocked upstream.

    The lifespan does not run without a `with` block, so state is built
    directly with the mocked transport and the fake clock.
    """
    app = create_app(settings)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.async_handler))
    init_app_state(app, settings, http_client=http_client, clock=clock)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture(autouse=True)
def _reset_edge_limiter() -> Iterator[None]:
    """slowapi keeps its counters in a module-level limiter; isolate tests."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> respx.Router:
    """Mocked upstream APIs. Unmatched requests raise (fail-safe)."""
    return respx.Router(assert_all_called=False, assert_all_mocked=True)


@pytest.fixture
def client(test_settings: Settings, upstream: respx.Router, clock: FakeClock) -> TestClient:
    return build_client(test_settings, upstream, clock)


# ── Upstream payloads ────────────────────────────────────────────────────────


def place(index: int, **extra: Any) -> dict[str, Any]:
    """One Places API result, shaped like the real thing."""
    return {
        "place_id": f"place-{index}",
        "name": f"Cafe {index}",
        "formatted_address": f"{index} Main St, Springfield",
        "vicinity": f"{index} Main St",
        "geometry": {"location": {"lat": 40.0 + index / 100, "lng": -74.0 - index / 100}},
        "types": ["cafe", "food", "point_of_interest", "establishment", "store"],
        "business_status": "OPERATIONAL",
        "plus_code": {"global_code": "87G8Q2"},
        "rating": 4.5,
        **extra,
    }


@pytest.fixture
def places_payload() -> dict[str, Any]:
    return {"status": "OK", "results": [place(i) for i in range(20)]}


@pytest.fixture
def geocode_payload() -> dict[str, Any]:
    return {
        "status": "OK",
        "results": [
            {
                "place_id": "geo-1",
                "formatted_address": "1600 Amphitheatre Pkwy, Mountain View, CA 94043, USA",
                "geometry": {"location": {"lat": 37.422, "lng": -122.084}},
                "address_components": [
                    {"long_name": "1600", "short_name": "1600", "types": ["street_number"]},
                    {
                        "long_name": "Mountain View",
                        "short_name": "Mountain View",
                        "types": ["locality", "political"],
                    },
                    {
                        "long_name": "California",
                        "short_name": "CA",
                        "types": ["administrative_area_level_1", "political"],
                    },
                    {
                        "long_name": "United States",
                        "short_name": "US",
                        "types": ["country", "political"],
                    },
                    {"long_name": "94043", "short_name": "94043", "types": ["postal_code"]},
                ],
            }
        ],
    }


@pytest.fixture
def current_weather_payload() -> dict[str, Any]:
    return {
        "coord": {"lon": -74.0, "lat": 40.7},
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        "base": "stations",
        "main": {
            "temp": 21.3,
            "feels_like": 20.9,
            "temp_min": 19.0,
            "temp_max": 23.0,
            "pressure": 1015,
            "humidity": 55,
        },
        "visibility": 10000,
        "wind": {"speed": 3.6, "deg": 240},
        "dt": 1_700_000_000,
        "sys": {"type": 2, "id": 2039034, "country": "US", "sunrise": 1_699_960_000, "sunset": 1_699_996_000},
        "timezone": -18000,
        "id": 5128581,
        "name": "New York",
        "cod": 200,
    }


# 2024-01-01T00:00:00Z
FORECAST_START = 1_704_067_200

DAY_ONE_CONDITIONS = ["Clear", "Clouds", "Clouds", "Rain", "Clouds", "Clear", "Rain", "Clear"]


@pytest.fixture
def forecast_payload() -> dict[str, Any]:
    """Two days of 3-hourly slots."""
    slots = []
    for i in range(16):
        condition = DAY_ONE_CONDITIONS[i] if i < 8 else "Snow"
        slots.append(
            {
                "dt": FORECAST_START + i * 3 * 3600,
                "main": {"temp": 10.0 + i, "feels_like": 9.0 + i},
                "weather": [
                    {"main": condition, "description": condition.lower(), "icon": f"icon-{i}"}
                ],
            }
        )
    return {
        "cod": "200",
        "cnt": len(slots),
        "list": slots,
        "city": {"name": "London", "country": "GB", "coord": {"lat": 51.5, "lon": -0.12}},
    }
