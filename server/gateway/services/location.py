# ─────────────────────────────────────────────────────────────────────────────
# Location Service — Places / Geocoding lookups with minimal payloads
# ─────────────────────────────────────────────────────────────────────────────
# Inputs arrive already validated (see routes/location.py); this layer only
# builds the upstream request, attaches the Maps key and shapes the reply.
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any

from gateway.config import UpstreamCredentials
from gateway.exceptions import UpstreamFailureError
from gateway.schemas import (
    GeocodeResponse,
    LocationSearchResponse,
    NearbySearchResponse,
    ReverseGeocodeResponse,
)
from gateway.shaping import shape_geocode, shape_nearby, shape_place_search, shape_reverse_geocode
from gateway.upstream.client import UpstreamClient
from gateway.validation import Coordinates

MAPS_API_BASE = "https://maps.googleapis.com/maps/api"
SERVICE = "google_maps"

# Ask the Places API for only what the shapers read.
_SEARCH_FIELDS = "place_id,name,formatted_address,geometry"
_NEARBY_FIELDS = "place_id,name,vicinity,geometry,types,rating"


class LocationService:
    def __init__(self, upstream: UpstreamClient, credentials: UpstreamCredentials) -> None:
        self._upstream = upstream
        self._credentials = credentials

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        key = self._credentials.require(SERVICE)
        response = await self._upstream.request(
            SERVICE, "GET", f"{MAPS_API_BASE}/{path}", params={**params, "key": key}
        )
        if not isinstance(response.payload, dict):
            raise UpstreamFailureError("Unexpected response from location provider", 502)
        return response.payload

    async def search(self, query: str) -> LocationSearchResponse:
        payload = await self._get(
            "place/textsearch/json", {"query": query, "fields": _SEARCH_FIELDS}
        )
        return shape_place_search(payload)

    async def geocode(self, address: str) -> GeocodeResponse:
        payload = await self._get("geocode/json", {"address": address})
        return shape_geocode(payload)

    async def reverse_geocode(self, at: Coordinates) -> ReverseGeocodeResponse:
        payload = await self._get("geocode/json", {"latlng": at.as_latlng()})
        return shape_reverse_geocode(payload, at)

    async def nearby(
        self, at: Coordinates, radius_m: int, place_type: str | None = None
    ) -> NearbySearchResponse:
        params = {"location": at.as_latlng(), "radius": str(radius_m)}
        if place_type:
            params["type"] = place_type
        params["fields"] = _NEARBY_FIELDS
        payload = await self._get("place/nearbysearch/json", params)
        return shape_nearby(payload)
