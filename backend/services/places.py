"""Country- and state-level place details.

Country facts come from REST Countries; both detail levels reuse the
Wikipedia summary client (and its cache) for the descriptive extract.

Sentinel policy: descriptive text falls back to "N/A", numbers and URLs
to None, and a missing extract to NO_SUMMARY.
"""

import logging
from urllib.parse import quote

from errors import UpstreamError
from services import population, wiki
from services.cache import name_key
from services.upstream import Upstreams, get_json

logger = logging.getLogger(__name__)

RESTCOUNTRIES_URL = "https://restcountries.com/v3.1/name/{country}"
COUNTRY_ERROR_MESSAGE = "Failed to fetch country info."
STATE_ERROR_MESSAGE = "Failed to fetch state info."
NO_SUMMARY = "No Wikipedia summary found."


def _field(data: dict, field: str, kind: type):
    value = data.get(field) or kind()
    if not isinstance(value, kind):
        raise UpstreamError(
            COUNTRY_ERROR_MESSAGE,
            service="restcountries",
            cause=f"Malformed {field!r}: expected {kind.__name__}",
        )
    return value


def _country_detail(requested: str, data: dict) -> dict:
    flags = _field(data, "flags", dict)
    capitals = _field(data, "capital", list)
    currencies = _field(data, "currencies", dict)
    name = _field(data, "name", dict).get("common") or requested

    return {
        "name": name,
        "capital": capitals[0] if capitals else "N/A",
        "population": data.get("population"),
        "area_km2": data.get("area"),
        "flag_url": flags.get("svg") or flags.get("png"),
        "region": data.get("region") or "N/A",
        "subregion": data.get("subregion") or "N/A",
        "currencies": ", ".join(currencies.keys()) if currencies else "N/A",
    }


async def _extract_or_default(upstreams: Upstreams, title: str) -> str:
    try:
        summary = await wiki.get_summary(upstreams, title)
    except UpstreamError as e:
        logger.warning("No summary for %s: %s", title, e.cause)
        return NO_SUMMARY
    return summary.get("extract") or NO_SUMMARY


async def get_country_info(upstreams: Upstreams, country: str) -> dict:
    """CountryDetail for an exact (full-text) country name."""
    country = country.strip()
    key = name_key("country", country)
    cached = upstreams.cache.get(key)
    if cached is not None:
        return cached

    data = await get_json(
        upstreams,
        RESTCOUNTRIES_URL.format(country=quote(country, safe="")),
        service="restcountries",
        error_message=COUNTRY_ERROR_MESSAGE,
        params={"fullText": "true"},
    )
    if not isinstance(data, list):
        raise UpstreamError(COUNTRY_ERROR_MESSAGE, service="restcountries", cause="Expected a JSON array")

    first = data[0] if data else {}
    if not isinstance(first, dict):
        raise UpstreamError(COUNTRY_ERROR_MESSAGE, service="restcountries", cause="Expected a country object")
    result = _country_detail(country, first)
    result["wiki_extract"] = await _extract_or_default(upstreams, result["name"])

    upstreams.cache.set(key, result, ttl_seconds=upstreams.settings.cache_ttl_places)
    return result


async def get_state_info(upstreams: Upstreams, country: str, state: str) -> dict:
    """StateDetail: the state's summary plus a best-effort population figure."""
    country, state = country.strip(), state.strip()
    key = name_key("state", country, state)
    cached = upstreams.cache.get(key)
    if cached is not None:
        return cached

    try:
        summary = await wiki.get_summary(upstreams, state)
    except UpstreamError as e:
        raise UpstreamError(STATE_ERROR_MESSAGE, service=e.service, cause=e.cause) from e

    try:
        pop = await population.get_population(upstreams, state)
        state_population = pop["population"]
    except UpstreamError as e:
        logger.warning("State population unavailable for %s: %s", state, e.cause)
        state_population = None

    result = {
        "country": country,
        "state": state,
        "population": state_population,
        "wiki_extract": summary.get("extract") or NO_SUMMARY,
    }
    upstreams.cache.set(key, result, ttl_seconds=upstreams.settings.cache_ttl_places)
    return result
