"""Name-based routes: encyclopedia summary, population, country and state info."""

from fastapi import APIRouter, Depends, Query

from errors import UpstreamError, ValidationError
from services.places import get_country_info, get_state_info
from services.population import get_population
from services.upstream import Upstreams, get_upstreams
from services.wiki import get_summary

router = APIRouter(prefix="/api")


def _clean(value: str | None) -> str:
    return (value or "").strip()


@router.get("/wiki/summary")
async def wiki_summary(
    title: str | None = Query(None),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    title = _clean(title)
    if not title:
        raise ValidationError("title required")
    return await get_summary(upstreams, title)


@router.get("/population")
async def population_lookup(
    city: str | None = Query(None),
    title: str | None = Query(None),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    """Latest Wikidata population for a place name (``city`` wins over ``title``).

    Unlike its sibling routes, a failure here returns the upstream error
    text under ``details`` to help diagnose Wikidata/SPARQL issues.
    """
    name = _clean(city) or _clean(title)
    if not name:
        raise ValidationError("Please provide ?city=CityName or ?title=PlaceName")

    try:
        return await get_population(upstreams, name)
    except UpstreamError as e:
        raise UpstreamError(str(e), service=e.service, cause=e.cause, expose_details=True) from e


@router.get("/country/info")
async def country_info(
    country: str | None = Query(None),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    country = _clean(country)
    if not country:
        raise ValidationError("Country is required")
    return await get_country_info(upstreams, country)


@router.get("/state/info")
async def state_info(
    country: str | None = Query(None),
    state: str | None = Query(None),
    upstreams: Upstreams = Depends(get_upstreams),
) -> dict:
    country, state = _clean(country), _clean(state)
    if not country or not state:
        raise ValidationError("Country and state are required.")
    return await get_state_info(upstreams, country, state)
