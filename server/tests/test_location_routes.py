# ─────────────────────────────────────────────────────────────────────────────
# Tests — /location/* routes against a mocked Maps upstream
# ─────────────────────────────────────────────────────────────────────────────

import httpx
import pytest
import respx
from conftest import build_client, make_settings
from dirty_equals import IsFloat, IsList, IsPartialDict

MAPS_HOST = "maps.googleapis.com"


@pytest.fixture
def textsearch(upstream: respx.Router, places_payload):
    return upstream.get(host=MAPS_HOST, path="/maps/api/place/textsearch/json").mock(
        return_value=httpx.Response(200, json=places_payload)
    )


@pytest.fixture
def geocode(upstream: respx.Router, geocode_payload):
    return upstream.get(host=MAPS_HOST, path="/maps/api/geocode/json").mock(
        return_value=httpx.Response(200, json=geocode_payload)
    )


@pytest.fixture
def nearbysearch(upstream: respx.Router, places_payload):
    return upstream.get(host=MAPS_HOST, path="/maps/api/place/nearbysearch/json").mock(
        return_value=httpx.Response(200, json=places_payload)
    )


class TestSearch:
    def test_returns_top_ten(self, client, textsearch):
        resp = client.get("/location/search", params={"query": "coffee"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["locations"] == IsList(length=10)
        assert body["locations"][0] == {
            "id": "place-0",
            "name": "Cafe 0",
            "address": "0 Main St, Springfield",
            "latitude": IsFloat,
            "longitude": IsFloat,
            "types": ["cafe", "food", "point_of_interest"],
        }

    def test_upstream_params(self, client, textsearch):
        client.get("/location/search", params={"query": "coffee <near> me"})
        params = textsearch.calls.last.request.url.params
        assert params["query"] == "coffee near me"
        assert params["key"] == "maps-test-key"
        assert "fields" in params

    def test_short_query_rejected_without_upstream_call(self, client, textsearch):
        resp = client.get("/location/search", params={"query": "a"})
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Invalid query parameter. Must be between 2 and 100 characters."
        }
        assert not textsearch.called

    def test_missing_query(self, client, textsearch):
        assert client.get("/location/search").status_code == 400

    def test_eleventh_request_is_rate_limited(self, client, textsearch, clock):
        for _ in range(10):
            assert client.get("/location/search", params={"query": "coffee"}).status_code == 200

        resp = client.get("/location/search", params={"query": "coffee"})
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "60"
        assert resp.json() == {"error": "Rate limit exceeded. Please try again later."}
        assert textsearch.call_count == 10

        clock.advance(61)
        assert client.get("/location/search", params={"query": "coffee"}).status_code == 200

    def test_rate_limit_is_per_client(self, client, textsearch):
        for _ in range(10):
            client.get(
                "/location/search",
                params={"query": "coffee"},
                headers={"X-Forwarded-For": "203.0.113.1"},
            )
        blocked = client.get(
            "/location/search", params={"query": "coffee"}, headers={"X-Forwarded-For": "203.0.113.1"}
        )
        other = client.get(
            "/location/search", params={"query": "coffee"}, headers={"X-Forwarded-For": "203.0.113.2"}
        )
        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_invalid_requests_still_count(self, client, textsearch):
        for _ in range(10):
            client.get("/location/search", params={"query": "a"})
        assert client.get("/location/search", params={"query": "coffee"}).status_code == 429

    def test_post_not_allowed(self, client):
        resp = client.post("/location/search", params={"query": "coffee"})
        assert resp.status_code == 405
        assert resp.json() == {"error": "Method not allowed"}

    def test_missing_credential(self, upstream, clock, textsearch):
        client = build_client(make_settings(google_maps_api_key=""), upstream, clock)
        resp = client.get("/location/search", params={"query": "coffee"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "API key not configured for service: google_maps"}
        assert not textsearch.called


class TestGeocode:
    def test_happy_path(self, client, geocode):
        resp = client.get("/location/geocode", params={"address": "1600 Amphitheatre"})
        assert resp.status_code == 200
        assert resp.json() == {
            "location": {
                "latitude": 37.422,
                "longitude": -122.084,
                "formattedAddress": "1600 Amphitheatre Pkwy, Mountain View, CA 94043, USA",
                "placeId": "geo-1",
            }
        }
        assert geocode.calls.last.request.url.params["address"] == "1600 Amphitheatre"

    def test_zero_results(self, client, upstream):
        upstream.get(host=MAPS_HOST, path="/maps/api/geocode/json").mock(
            return_value=httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
        )
        resp = client.get("/location/geocode", params={"address": "nowhere at all"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Geocoding failed", "details": "ZERO_RESULTS"}

    def test_invalid_address(self, client, geocode):
        assert client.get("/location/geocode", params={"address": "x"}).status_code == 400
        assert not geocode.called


class TestReverseGeocode:
    def test_happy_path(self, client, geocode):
        resp = client.get(
            "/location/reverse-geocode", params={"latitude": "37.42", "longitude": "-122.08"}
        )
        assert resp.status_code == 200
        location = resp.json()["location"]
        assert location == IsPartialDict(
            latitude=37.42,
            longitude=-122.08,
            placeId="geo-1",
            addressComponents=IsPartialDict(country="United States", locality="Mountain View"),
        )
        assert "street_number" not in location["addressComponents"]
        assert geocode.calls.last.request.url.params["latlng"] == "37.42,-122.08"

    def test_trailing_garbage_after_coordinates(self, client, geocode):
        resp = client.get(
            "/location/reverse-geocode", params={"latitude": "37.42abc", "longitude": "-122.08deg"}
        )
        assert resp.status_code == 200
        assert geocode.calls.last.request.url.params["latlng"] == "37.42,-122.08"

    def test_missing_coordinates(self, client):
        resp = client.get("/location/reverse-geocode", params={"latitude": "37.42"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing latitude or longitude parameters"}

    def test_out_of_range(self, client, geocode):
        resp = client.get(
            "/location/reverse-geocode", params={"latitude": "95", "longitude": "0"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid coordinates")
        assert not geocode.called


class TestNearby:
    def test_happy_path(self, client, nearbysearch):
        resp = client.get("/location/nearby", params={"latitude": "40.7", "longitude": "-74.0"})
        assert resp.status_code == 200
        places = resp.json()["places"]
        assert len(places) == 15
        assert places[0] == IsPartialDict(id="place-0", address="0 Main St", rating=4.5)

        params = nearbysearch.calls.last.request.url.params
        assert params["location"] == "40.7,-74.0"
        assert params["radius"] == "1000"
        assert "type" not in params

    def test_radius_clamped(self, client, nearbysearch):
        client.get(
            "/location/nearby",
            params={"latitude": "40.7", "longitude": "-74.0", "radius": "99999"},
        )
        assert nearbysearch.calls.last.request.url.params["radius"] == "5000"

    def test_known_type_forwarded(self, client, nearbysearch):
        client.get(
            "/location/nearby",
            params={"latitude": "40.7", "longitude": "-74.0", "type": "museum"},
        )
        assert nearbysearch.calls.last.request.url.params["type"] == "museum"

    def test_unknown_type_omitted(self, client, nearbysearch):
        resp = client.get(
            "/location/nearby",
            params={"latitude": "40.7", "longitude": "-74.0", "type": "spaceport"},
        )
        assert resp.status_code == 200
        assert "type" not in nearbysearch.calls.last.request.url.params

    def test_rating_omitted_when_absent(self, client, upstream):
        upstream.get(host=MAPS_HOST, path="/maps/api/place/nearbysearch/json").mock(
            return_value=httpx.Response(
                200, json={"status": "OK", "results": [{**_bare_place(), "rating": None}]}
            )
        )
        resp = client.get("/location/nearby", params={"latitude": "1", "longitude": "2"})
        assert "rating" not in resp.json()["places"][0]


def _bare_place():
    return {
        "place_id": "p",
        "name": "Somewhere",
        "vicinity": "Main St",
        "geometry": {"location": {"lat": 1.0, "lng": 2.0}},
    }


class TestUnknownRoutes:
    def test_unknown_location_path(self, client):
        resp = client.get("/location/teleport")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Unknown endpoint"}

    def test_upstream_unreachable(self, client, upstream):
        upstream.get(host=MAPS_HOST, path="/maps/api/place/textsearch/json").mock(
            side_effect=httpx.ConnectError
        )
        resp = client.get("/location/search", params={"query": "coffee"})
        assert resp.status_code == 502
        assert resp.json() == {"error": "Upstream service unavailable"}

    def test_upstream_timeout(self, client, upstream):
        upstream.get(host=MAPS_HOST, path="/maps/api/place/textsearch/json").mock(
            side_effect=httpx.ReadTimeout
        )
        resp = client.get("/location/search", params={"query": "coffee"})
        assert resp.status_code == 504
        assert resp.json()["error"].startswith("Upstream service timed out")
