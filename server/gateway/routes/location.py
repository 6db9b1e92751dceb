# ─────────────────────────────────────────────────────────────────────────────
# Location routes — /location/{search,geocode,reverse-geocode,nearby}
# ─────────────────────────────────────────────────────────────────────────────
# Each route: rate-limit gate (dependency) → validate → LocationService.
# Validation is gateway.validation. Errors are exceptions. Routes are wiring.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Query, Request

from gateway.dependencies import get_location_service
from gateway.rate_limit import edge_rate_limit, limiter, rate_limited
from gateway.schemas import (
    ERROR_RESPONSES,
    GeocodeResponse,
    LocationSearchResponse,
    NearbySearchResponse,
    ReverseGeocodeResponse,
)
from gateway.services.location import LocationService
from gateway.validation import (
    normalize_place_type,
    parse_coordinates,
    parse_radius,
    validate_search_text,
)

router = APIRouter(responses=ERROR_RESPONSES)


@router.get(
    "/search",
    response_model=LocationSearchResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limited("location.search"))],
)
@limiter.limit(edge_rate_limit)
async def search(
    request: Request,
    query: str | None = None,
    location: LocationService = Depends(get_location_service),
) -> LocationSearchResponse:
    """Free-text place search, top 10 results."""
    return await location.search(validate_search_text(query, name="query"))


@router.get(
    "/geocode",
    response_model=GeocodeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limited("location.geocode"))],
)
@limiter.limit(edge_rate_limit)
async def geocode(
    request: Request,
    address: str | None = None,
    location: LocationService = Depends(get_location_service),
) -> GeocodeResponse:
    return await location.geocode(validate_search_text(address, name="address"))


@router.get(
    "/reverse-geocode",
    response_model=ReverseGeocodeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limited("location.reverse_geocode"))],
)
@limiter.limit(edge_rate_limit)
async def reverse_geocode(
    request: Request,
    latitude: str | None = None,
    longitude: str | None = None,
    location: LocationService = Depends(get_location_service),
) -> ReverseGeocodeResponse:
    return await location.reverse_geocode(parse_coordinates(latitude, longitude))


@router.get(
    "/nearby",
    response_model=NearbySearchResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limited("location.nearby"))],
)
@limiter.limit(edge_rate_limit)
async def nearby(
    request: Request,
    latitude: str | None = None,
    longitude: str | None = None,
    radius: str | None = None,
    place_type: str | None = Query(None, alias="type"),
    location: LocationService = Depends(get_location_service),
) -> NearbySearchResponse:
    """Places around a point. Radius is clamped, unknown types are dropped."""
    at = parse_coordinates(latitude, longitude)
    return await location.nearby(at, parse_radius(radius), normalize_place_type(place_type))
