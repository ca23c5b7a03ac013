"""TimezoneDB local-time client (lookup by position).

TimezoneDB answers HTTP 200 even for failed lookups and signals the
failure with ``status: "FAILED"`` in the body, so that is checked here.
"""

from errors import ConfigurationError, UpstreamError
from services.cache import coord_key
from services.upstream import Upstreams, get_json, require_object

TIMEZONEDB_URL = "http://api.timezonedb.com/v2.1/get-time-zone"
ERROR_MESSAGE = "Timezone fetch failed"
MISSING_KEY_MESSAGE = (
    "TIMEZONEDB_KEY not configured. Either set TIMEZONEDB_KEY or call "
    "/api/geocode/reverse first to obtain place/timezone info."
)


async def get_local_time(upstreams: Upstreams, lat: float, lng: float) -> dict:
    """Get zone name, offset and formatted local time for a coordinate."""
    key = coord_key("timezone", lat, lng)
    cached = upstreams.cache.get(key)
    if cached is not None:
        return cached

    api_key = upstreams.settings.timezonedb_key
    if not api_key:
        # A deployment problem rather than a transient failure, reported as 400.
        raise ConfigurationError("TIMEZONEDB_KEY", MISSING_KEY_MESSAGE, status_code=400)

    data = await get_json(
        upstreams,
        TIMEZONEDB_URL,
        service="timezonedb",
        error_message=ERROR_MESSAGE,
        params={"key": api_key, "format": "json", "by": "position", "lat": lat, "lng": lng},
    )
    result = require_object(data, service="timezonedb", error_message=ERROR_MESSAGE)
    if result.get("status") == "FAILED":
        raise UpstreamError(
            ERROR_MESSAGE,
            service="timezonedb",
            cause=result.get("message") or "TimezoneDB reported FAILED",
        )

    upstreams.cache.set(key, result, ttl_seconds=upstreams.settings.cache_ttl_timezone)
    return result
