"""Coordinate-based routes: reverse geocode, current weather, local time."""

from fastapi import APIRouter, Depends, Query

from errors import ValidationError
from services.geocode import reverse_geocode
from services.timezone import get_local_time
from services.upstream import Upstreams, get_upstreams
from services.weather import get_weather

router = APIRouter(prefix="/api")


def _require_coords(lat: float | None, lng: float | None) -> tuple[float, float]:
    """Reject the request before any upstream call if either coordinate is missing."""
    if lat is None or lng is None:
        raise ValidationError("lat & lng required")
    return lat, lng


@router.get("/geocode/reverse")
async def geocode_reverse(
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    """Formatted address, components and geometry for a coordinate."""
    lat, lng = _require_coords(lat, lng)
    return await reverse_geocode(upstreams, lat, lng)


@router.get("/weather/current")
async def weather_current(
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    lat, lng = _require_coords(lat, lng)
    return await get_weather(upstreams, lat, lng)


@router.get("/timezone/local")
async def timezone_local(
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    lat, lng = _require_coords(lat, lng)
    return await get_local_time(upstreams, lat, lng)
