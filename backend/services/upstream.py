"""Shared plumbing for the upstream adapters.

Every adapter receives an ``Upstreams`` bundle (HTTP client, cache,
settings) instead of reaching for module globals, and issues its calls
through ``get_json`` so that transport failures, non-2xx statuses and
unparseable bodies all surface as ``UpstreamError``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from fastapi import Request

from config import Settings
from errors import UpstreamError
from services.cache import TTLCache

logger = logging.getLogger(__name__)


@dataclass
class Upstreams:
    http: httpx.AsyncClient
    cache: TTLCache
    settings: Settings

    @property
    def default_headers(self) -> dict[str, str]:
        return {"User-Agent": self.settings.user_agent}


def get_upstreams(request: Request) -> Upstreams:
    """FastAPI dependency: the Upstreams bundle built by create_app."""
    return request.app.state.upstreams


async def get_json(
    upstreams: Upstreams,
    url: str,
    *,
    service: str,
    error_message: str,
    params: dict | None = None,
    headers: dict | None = None,
    total_timeout: float | None = None,
) -> Any:
    """GET ``url`` and return the decoded JSON body.

    ``total_timeout`` bounds the whole call (connect + transfer) on top of
    the client's per-operation socket timeouts.
    """
    request_headers = {**upstreams.default_headers, **(headers or {})}
    try:
        call = upstreams.http.get(url, params=params, headers=request_headers)
        if total_timeout is not None:
            resp = await asyncio.wait_for(call, timeout=total_timeout)
        else:
            resp = await call
        resp.raise_for_status()
        return resp.json()
    except asyncio.TimeoutError:
        cause = f"{service} did not respond within {total_timeout}s"
        logger.warning("%s request timed out: %s", service, url)
        raise UpstreamError(error_message, service=service, cause=cause) from None
    except httpx.HTTPError as e:
        logger.warning("%s request failed: %s", service, e)
        raise UpstreamError(error_message, service=service, cause=str(e)) from e
    except ValueError as e:
        logger.warning("%s returned a non-JSON body: %s", service, e)
        raise UpstreamError(error_message, service=service, cause=f"Malformed response: {e}") from e


def require_object(data: Any, *, service: str, error_message: str) -> dict:
    """Reject bodies that are valid JSON but not an object."""
    if not isinstance(data, dict):
        raise UpstreamError(
            error_message,
            service=service,
            cause=f"Expected a JSON object, got {type(data).__name__}",
        )
    return data
