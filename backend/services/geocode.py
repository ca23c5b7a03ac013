"""OpenCage reverse geocoding client.

Requires OPENCAGE_KEY. Only the first (best) result is used.
"""

from errors import ConfigurationError
from services.cache import coord_key
from services.upstream import Upstreams, get_json, require_object

OPENCAGE_URL = "https://api.opencagedata.com/geocode/v1/json"
ERROR_MESSAGE = "OpenCage geocoding failed"


def _normalize(data: dict) -> dict:
    results = data.get("results") or []
    if not results:
        return {"formatted": None, "components": {}, "geometry": None}

    best = results[0]
    return {
        "formatted": best.get("formatted"),
        "components": best.get("components") or {},
        "geometry": best.get("geometry"),
    }


async def reverse_geocode(upstreams: Upstreams, lat: float, lng: float) -> dict:
    """Resolve a coordinate into formatted address, components and geometry."""
    key = coord_key("geocode", lat, lng)
    cached = upstreams.cache.get(key)
    if cached is not None:
        return cached

    api_key = upstreams.settings.opencage_key
    if not api_key:
        raise ConfigurationError("OPENCAGE_KEY", "OPENCAGE_KEY not configured")

    data = await get_json(
        upstreams,
        OPENCAGE_URL,
        service="opencage",
        error_message=ERROR_MESSAGE,
        params={"q": f"{lat},{lng}", "key": api_key, "language": "en", "no_annotations": 1},
    )
    result = _normalize(require_object(data, service="opencage", error_message=ERROR_MESSAGE))

    upstreams.cache.set(key, result, ttl_seconds=upstreams.settings.cache_ttl_geocode)
    return result


def place_names(geo: dict) -> tuple[str | None, str | None, str | None]:
    """Pull (country, state, city) out of a geocode result."""
    c = geo.get("components") or {}
    country = c.get("country") or c.get("country_name")
    state = c.get("state") or c.get("region")
    city = c.get("city") or c.get("town")
    return country, state, city
