# ─────────────────────────────────────────────────────────────────────────────
# Schema Factory Tests — polyfactory
# ─────────────────────────────────────────────────────────────────────────────
# Demonstrates: polyfactory for generating valid response models, checked
# against the camelCase wire shape the browser client reads.
# ─────────────────────────────────────────────────────────────────────────────

from dirty_equals import IsFloat, IsInstance, IsList, IsStr
from polyfactory.factories.pydantic_factory import ModelFactory

from gateway.schemas import (
    DailySummary,
    ErrorResponse,
    ForecastResponse,
    LocationSearchResponse,
    MetricsSnapshot,
    NearbyPlace,
    PlaceSummary,
)
from gateway.services.metrics import ProxyMetrics

# ─── Factories ───────────────────────────────────────────────────────────────


class PlaceSummaryFactory(ModelFactory):
    __model__ = PlaceSummary


class LocationSearchResponseFactory(ModelFactory):
    __model__ = LocationSearchResponse


class NearbyPlaceFactory(ModelFactory):
    __model__ = NearbyPlace


class DailySummaryFactory(ModelFactory):
    __model__ = DailySummary


class ForecastResponseFactory(ModelFactory):
    __model__ = ForecastResponse


# ─── Tests ───────────────────────────────────────────────────────────────────


class TestLocationSchemas:
    def test_place_summary_wire_shape(self):
        data = PlaceSummaryFactory.build(address="1 Main St").model_dump(by_alias=True)
        assert data == {
            "id": IsStr,
            "name": IsStr,
            "address": "1 Main St",
            "latitude": IsFloat,
            "longitude": IsFloat,
            "types": IsList(length=(0, 3)),
        }

    def test_search_response_respects_max_results(self):
        for response in LocationSearchResponseFactory.batch(20):
            assert len(response.locations) <= 10

    def test_nearby_camel_and_snake_both_accepted(self):
        by_alias = NearbyPlace.model_validate(
            {"id": "p", "name": "n", "latitude": 1, "longitude": 2}
        )
        by_name = NearbyPlace(id="p", name="n", latitude=1, longitude=2)
        assert by_alias == by_name

    def test_nearby_batch_types_capped(self):
        assert all(len(place.types) <= 3 for place in NearbyPlaceFactory.batch(30))


class TestWeatherSchemas:
    def test_daily_summary_camel_case(self):
        data = DailySummaryFactory.build().model_dump(by_alias=True)
        assert set(data) == {
            "minTemperature",
            "maxTemperature",
            "avgTemperature",
            "condition",
            "icon",
        }

    def test_forecast_serializes(self):
        for response in ForecastResponseFactory.batch(10):
            data = response.model_dump(by_alias=True)
            assert data["forecast"] == IsInstance(list)
            assert set(data["location"]) == {"name", "country", "latitude", "longitude"}


class TestMetricsSnapshot:
    def test_proxy_metrics_match_schema(self):
        metrics = ProxyMetrics()
        metrics.record_upstream("weather", 200, 12.5)
        metrics.record_upstream("openai", 503, 40.0)
        metrics.record_upstream_failure("openai", 10_000.0)
        metrics.record_rate_limited("proxy.openai")

        snapshot = MetricsSnapshot.model_validate(metrics.to_dict())
        assert snapshot.upstream_requests_total == 3
        assert snapshot.upstream_errors_total == 1
        assert snapshot.upstream_failures_total == 1
        assert snapshot.errors_by_service == {"openai": 2}
        assert snapshot.rate_limited_by_bucket == {"proxy.openai": 1}
        assert snapshot.latency_p50_ms == 40.0


class TestErrorResponseSchema:
    def test_error_body_documented_on_gateway_routes(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        ref = {"$ref": "#/components/schemas/ErrorResponse"}
        for path, method in [
            ("/location/search", "get"),
            ("/weather/current", "get"),
            ("/api-proxy", "post"),
        ]:
            responses = schema["paths"][path][method]["responses"]
            assert responses["429"]["content"]["application/json"]["schema"] == ref
            assert "400" in responses

    def test_error_body_shape(self):
        assert ErrorResponse(error="Rate limit exceeded").model_dump(exclude_none=True) == {
            "error": "Rate limit exceeded"
        }
