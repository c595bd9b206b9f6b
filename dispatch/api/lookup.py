"""Address helpers: postal code, forward and reverse geocoding."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dispatch.config import Settings
from dispatch.dependencies import get_geocoder, get_settings_dep, require_auth
from dispatch.services.auth import AuthContext
from dispatch.services.geocoding import Geocoder
from dispatch.services.postal import lookup_postal_code
from dispatch.schemas import CoordinatesRead, PlaceRead, PostalAddressRead

router = APIRouter(prefix="/api/lookup", tags=["lookup"])


@router.get("/postal-code/{code}", response_model=PostalAddressRead)
async def postal_code(
    code: str,
    settings: Settings = Depends(get_settings_dep),
):
    # Used by the public registration form, so no auth.
    return await lookup_postal_code(code, settings.postal)


@router.get("/geocode", response_model=CoordinatesRead)
async def geocode(
    address: str,
    fallback: str | None = None,
    auth: AuthContext = Depends(require_auth),
    geocoder: Geocoder = Depends(get_geocoder),
):
    coords = await geocoder.geocode(address, fallback)
    if coords is None:
        return CoordinatesRead(found=False)
    return CoordinatesRead(found=True, lat=coords.lat, lon=coords.lon)


@router.get("/reverse", response_model=PlaceRead)
async def reverse(
    lat: float,
    lon: float,
    auth: AuthContext = Depends(require_auth),
    geocoder: Geocoder = Depends(get_geocoder),
):
    place = await geocoder.reverse(lat, lon)
    if place is None:
        return PlaceRead(found=False)
    return PlaceRead(found=True, city=place.city, state=place.state)
