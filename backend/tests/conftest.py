"""Shared fixtures: fake clock, upstream stub, settings and app clients.

Tests never touch the network; see upstream_stub.py.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from fastapi import testclient

import app as app_module
from config import Settings
from services.cache import TTLCache
from services.upstream import Upstreams
from upstream_stub import FakeClock, UpstreamStub


@pytest.fixture
def api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENCAGE_KEY", "test-opencage")
    monkeypatch.setenv("OPENWEATHER_KEY", "test-openweather")
    monkeypatch.setenv("TIMEZONEDB_KEY", "test-timezonedb")


@pytest.fixture
def settings(api_keys: None) -> Settings:
    return Settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def stub() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def make_client(
    settings: Settings, cache: TTLCache, stub: UpstreamStub
) -> Callable[..., testclient.TestClient]:
    """Factory so tests can swap in different settings before building the app."""

    def _make(app_settings: Settings | None = None) -> testclient.TestClient:
        app = app_module.create_app(
            settings=app_settings or settings,
            cache=cache,
            transport=stub.transport,
        )
        return testclient.TestClient(app)

    return _make


@pytest.fixture
def client(make_client: Callable[..., testclient.TestClient]) -> testclient.TestClient:
    return make_client()


@pytest.fixture
def upstreams(settings: Settings, cache: TTLCache, stub: UpstreamStub) -> Upstreams:
    """Direct adapter access without going through HTTP routes."""
    return Upstreams(
        http=httpx.AsyncClient(transport=stub.transport),
        cache=cache,
        settings=settings,
    )
