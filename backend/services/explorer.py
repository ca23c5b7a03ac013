"""Map-click aggregation: one coordinate in, one composite place view out.

Only the reverse geocode is mandatory. The place detail and the four
best-effort lookups (weather, local time, summary, population) are each
allowed to fail on their own; a failure is logged and shows up as None in
the composite instead of failing the request.
"""

import asyncio
import logging

from services import places, population, timezone, weather, wiki
from services.geocode import place_names, reverse_geocode
from services.upstream import Upstreams

logger = logging.getLogger(__name__)

LEVEL_COUNTRY = "country"
LEVEL_STATE = "state"
FALLBACK_PLACE = "Earth"


def choose_level(
    altitude: float | None,
    threshold: float,
    country: str | None,
    state: str | None,
) -> str:
    """State detail only when zoomed in strictly below the threshold."""
    if altitude is not None and altitude < threshold and state and country:
        return LEVEL_STATE
    return LEVEL_COUNTRY


async def _fetch_details(
    upstreams: Upstreams, level: str, country: str | None, state: str | None
) -> dict | None:
    try:
        if level == LEVEL_STATE:
            return await places.get_state_info(upstreams, country, state)
        if country:
            return await places.get_country_info(upstreams, country)
    except Exception as e:
        logger.warning("%s detail unavailable for %s: %s", level, state or country, e)
    return None


def _settled(label: str, outcome):
    """Map one gather() outcome to its value, or None if it raised."""
    if isinstance(outcome, BaseException):
        logger.warning("Explore: %s lookup failed: %s", label, getattr(outcome, "cause", None) or outcome)
        return None
    return outcome


async def explore(
    upstreams: Upstreams,
    lat: float,
    lng: float,
    altitude: float | None = None,
) -> dict:
    """Build the composite place view for a clicked coordinate."""
    geo = await reverse_geocode(upstreams, lat, lng)
    country, state, city = place_names(geo)

    level = choose_level(altitude, upstreams.settings.zoom_state_threshold, country, state)
    details = await _fetch_details(upstreams, level, country, state)

    place = city or state or country or FALLBACK_PLACE
    labels = ("weather", "time", "wiki", "pop")
    # Settle-all: every lookup runs to completion; exceptions come back as values.
    outcomes = await asyncio.gather(
        weather.get_weather(upstreams, lat, lng),
        timezone.get_local_time(upstreams, lat, lng),
        wiki.get_summary(upstreams, place),
        population.get_population(upstreams, place),
        return_exceptions=True,
    )
    settled = {label: _settled(label, outcome) for label, outcome in zip(labels, outcomes)}

    return {
        "lat": lat,
        "lng": lng,
        "altitude": altitude,
        "level": level,
        "geo": geo,
        "country": country,
        "state": state,
        "city": city,
        "details": details,
        **settled,
    }
