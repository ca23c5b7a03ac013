"""Simple in-memory TTL cache. No Redis needed.

One instance is built per app in ``create_app`` and shared by every
request handler. Each uvicorn worker therefore has its own cache; with
several workers an upstream fact may be fetched once per worker. Writes
are last-write-wins, which is fine because every cached value is a
re-derivation of the same upstream answer.
"""

import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 5


class TTLCache:
    def __init__(
        self,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: dict[str, tuple[float, Any]] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    def get(self, key: str) -> Any | None:
        if key in self._store:
            expires_at, value = self._store[key]
            if self._clock() < expires_at:
                logger.debug("Cache hit for %s", key)
                return value
            del self._store[key]
        return None

    def set(self, key: str, value: Any, ttl_seconds: int | float | None = None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        self._store[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def stats(self) -> dict:
        now = self._clock()
        valid = sum(1 for expires_at, _ in self._store.values() if now < expires_at)
        return {
            "total_entries": len(self._store),
            "valid_entries": valid,
            "default_ttl_seconds": self._default_ttl,
        }


def coord_key(namespace: str, lat: float, lng: float) -> str:
    """Cache key for a coordinate-based upstream, e.g. ``weather:48.85,2.35``."""
    return f"{namespace}:{lat},{lng}"


def name_key(namespace: str, *names: str) -> str:
    """Cache key for a name-based upstream, lowercased, e.g. ``wiki:paris``."""
    return f"{namespace}:" + ":".join(name.strip().lower() for name in names)
