"""OpenWeatherMap current-conditions client.

Requires OPENWEATHER_KEY. Returns the upstream payload (metric units)
unchanged; the globe front-end reads ``weather[0].description`` and
``main.temp`` straight from it.
"""

from errors import ConfigurationError
from services.cache import coord_key
from services.upstream import Upstreams, get_json, require_object

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
ERROR_MESSAGE = "Weather fetch failed"


async def get_weather(upstreams: Upstreams, lat: float, lng: float) -> dict:
    """Get current weather conditions at a coordinate."""
    key = coord_key("weather", lat, lng)
    cached = upstreams.cache.get(key)
    if cached is not None:
        return cached

    api_key = upstreams.settings.openweather_key
    if not api_key:
        raise ConfigurationError("OPENWEATHER_KEY")

    data = await get_json(
        upstreams,
        OPENWEATHER_URL,
        service="openweather",
        error_message=ERROR_MESSAGE,
        params={"lat": lat, "lon": lng, "appid": api_key, "units": "metric"},
    )
    result = require_object(data, service="openweather", error_message=ERROR_MESSAGE)

    upstreams.cache.set(key, result, ttl_seconds=upstreams.settings.cache_ttl_weather)
    return result
