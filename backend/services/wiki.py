"""Wikipedia REST page-summary client. No key required."""

from urllib.parse import quote

from services.cache import name_key
from services.upstream import Upstreams, get_json, require_object

SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"
ERROR_MESSAGE = "Wikipedia fetch failed"


async def get_summary(upstreams: Upstreams, title: str) -> dict:
    """Get the page summary (``extract``, ``title``, thumbnails...) for a title."""
    title = title.strip()
    key = name_key("wiki", title)
    cached = upstreams.cache.get(key)
    if cached is not None:
        return cached

    data = await get_json(
        upstreams,
        SUMMARY_URL.format(title=quote(title, safe="")),
        service="wikipedia",
        error_message=ERROR_MESSAGE,
    )
    result = require_object(data, service="wikipedia", error_message=ERROR_MESSAGE)

    upstreams.cache.set(key, result, ttl_seconds=upstreams.settings.cache_ttl_wiki)
    return result
