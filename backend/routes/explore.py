"""Composite map-click route: everything the info panel shows, in one call."""

from fastapi import APIRouter, Depends, Query

from errors import ValidationError
from services.explorer import explore
from services.upstream import Upstreams, get_upstreams

router = APIRouter(prefix="/api")


@router.get("/explore")
async def explore_point(
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    altitude: float | None = Query(None, ge=0),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    """Geocode the point, then gather details, weather, time, summary and population.

    ``altitude`` is the globe camera altitude; below the configured
    threshold the detail switches from country to state level.
    """
    if lat is None or lng is None:
        raise ValidationError("lat & lng required")
    return await explore(upstreams, lat, lng, altitude)
