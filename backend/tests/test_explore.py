"""Tests for the composite map-click route and its detail-level policy.

The key property: only the reverse geocode is mandatory. Every other
lookup fails on its own and shows up as None in the composite.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi import testclient

from config import Settings
from services.explorer import LEVEL_COUNTRY, LEVEL_STATE, choose_level
from upstream_stub import OPENCAGE, OPENWEATHER, RESTCOUNTRIES, SPARQL, TIMEZONEDB, WIKIDATA, WIKIPEDIA

THRESHOLD = 1.8
EPSILON = 1e-6


def test_explore_requires_coordinates(client: testclient.TestClient, stub) -> None:
    response = client.get("/api/explore?lat=48.85")
    assert response.status_code == 400
    assert response.json() == {"error": "lat & lng required"}
    assert stub.count() == 0


def test_explore_composes_every_section(client: testclient.TestClient, stub) -> None:
    """Without an altitude the country detail is used and all sections are filled."""
    response = client.get("/api/explore?lat=48.85&lng=2.35")
    assert response.status_code == 200
    body = response.json()

    assert body["lat"] == 48.85
    assert body["lng"] == 2.35
    assert body["altitude"] is None
    assert body["level"] == LEVEL_COUNTRY
    assert (body["country"], body["state"], body["city"]) == ("France", "Île-de-France", "Paris")
    assert body["geo"]["formatted"] == "Paris, Île-de-France, France"
    assert body["details"]["name"] == "France"
    assert body["weather"]["weather"][0]["description"] == "clear sky"
    assert body["time"]["zoneName"] == "Europe/Paris"
    assert body["wiki"]["extract"] == "Paris is a place."
    assert body["pop"]["population"] == 2145906
    assert body["pop"]["city"] == "Paris"


def test_weather_failure_only_nulls_weather(client: testclient.TestClient, stub) -> None:
    """A failing upstream never blocks or nulls its siblings."""
    stub.fail(OPENWEATHER)
    response = client.get("/api/explore?lat=48.85&lng=2.35")
    assert response.status_code == 200
    body = response.json()
    assert body["weather"] is None
    assert body["time"] is not None
    assert body["wiki"] is not None
    assert body["pop"] is not None
    assert body["details"] is not None


def test_all_best_effort_lookups_failing_still_returns_200(client: testclient.TestClient, stub) -> None:
    """Every lookup is attempted even when they all fail."""
    for host in (OPENWEATHER, TIMEZONEDB, WIKIPEDIA, WIKIDATA, RESTCOUNTRIES):
        stub.fail(host)
    response = client.get("/api/explore?lat=48.85&lng=2.35")
    assert response.status_code == 200
    body = response.json()
    assert [body[k] for k in ("details", "weather", "time", "wiki", "pop")] == [None] * 5
    for host in (OPENWEATHER, TIMEZONEDB, WIKIPEDIA, WIKIDATA):
        assert stub.count(host) >= 1


def test_missing_timezone_key_only_nulls_time(
    monkeypatch: pytest.MonkeyPatch, make_client, stub
) -> None:
    """Configuration errors in a best-effort lookup are tolerated too."""
    monkeypatch.delenv("TIMEZONEDB_KEY")
    client = make_client(Settings())
    body = client.get("/api/explore?lat=48.85&lng=2.35").json()
    assert body["time"] is None
    assert body["weather"] is not None
    assert stub.count(TIMEZONEDB) == 0


def test_geocode_failure_fails_whole_request(client: testclient.TestClient, stub) -> None:
    stub.fail(OPENCAGE)
    response = client.get("/api/explore?lat=48.85&lng=2.35")
    assert response.status_code == 500
    assert response.json() == {"error": "OpenCage geocoding failed"}
    assert stub.count() == 1


def test_ocean_click_falls_back_to_earth(client: testclient.TestClient, stub) -> None:
    """No place components: no detail call, and summary/population use "Earth"."""
    stub.responses[OPENCAGE] = {"results": [{"formatted": "Pacific Ocean", "components": {}}]}
    body = client.get("/api/explore?lat=0&lng=-150").json()
    assert body["details"] is None
    assert body["level"] == LEVEL_COUNTRY
    assert body["wiki"]["extract"] == "Earth is a place."
    assert body["pop"]["city"] == "Earth"
    assert stub.count(RESTCOUNTRIES) == 0


def test_second_explore_is_fully_cached(client: testclient.TestClient, stub) -> None:
    first = client.get("/api/explore?lat=48.85&lng=2.35")
    calls = stub.count()
    second = client.get("/api/explore?lat=48.85&lng=2.35")
    assert second.content == first.content
    assert stub.count() == calls


@pytest.mark.parametrize("altitude,level", [
    (THRESHOLD, LEVEL_COUNTRY),
    (THRESHOLD - EPSILON, LEVEL_STATE),
    (THRESHOLD + EPSILON, LEVEL_COUNTRY),
])
def test_detail_level_threshold(
    client: testclient.TestClient, stub, altitude: float, level: str
) -> None:
    """State detail only strictly below the threshold; the threshold itself is country."""
    body = client.get(f"/api/explore?lat=48.85&lng=2.35&altitude={altitude}").json()
    assert body["level"] == level
    if level == LEVEL_STATE:
        assert body["details"]["state"] == "Île-de-France"
        assert stub.count(RESTCOUNTRIES) == 0
    else:
        assert body["details"]["name"] == "France"


def test_state_detail_failure_leaves_details_null(client: testclient.TestClient, stub) -> None:
    """A failed detail fetch keeps the chosen level and a null details."""
    original = stub.responses[WIKIPEDIA]

    def summary_except_state(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("Île-de-France"):
            return httpx.Response(503, json={"error": "down"})
        return original(request)

    stub.responses[WIKIPEDIA] = summary_except_state
    body = client.get("/api/explore?lat=48.85&lng=2.35&altitude=1.0").json()
    assert body["level"] == LEVEL_STATE
    assert body["details"] is None
    assert body["wiki"]["extract"] == "Paris is a place."


def test_choose_level_needs_state_and_country() -> None:
    assert choose_level(1.0, THRESHOLD, "France", None) == LEVEL_COUNTRY
    assert choose_level(1.0, THRESHOLD, None, "Bavaria") == LEVEL_COUNTRY
    assert choose_level(None, THRESHOLD, "France", "Bavaria") == LEVEL_COUNTRY
    assert choose_level(1.0, THRESHOLD, "France", "Bavaria") == LEVEL_STATE


def test_population_timeout_does_not_block_siblings(
    monkeypatch: pytest.MonkeyPatch, make_client, stub
) -> None:
    """A hung fact query is cut off and only nulls the population."""
    monkeypatch.setenv("POPULATION_TIMEOUT_SECONDS", "0.05")

    async def hung(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json={"results": {"bindings": []}})

    stub.responses[SPARQL] = hung
    body = make_client(Settings()).get("/api/explore?lat=48.85&lng=2.35").json()
    assert body["pop"] is None
    assert body["weather"] is not None
    assert body["wiki"] is not None


def test_malformed_population_search_only_nulls_population(client: testclient.TestClient, stub) -> None:
    """A search body of the wrong shape is an upstream failure, not a crash."""
    stub.responses[WIKIDATA] = {"search": ["Q90"]}
    response = client.get("/api/explore?lat=48.85&lng=2.35&altitude=1.0")
    assert response.status_code == 200
    body = response.json()
    assert body["level"] == LEVEL_STATE
    assert body["details"]["state"] == "Île-de-France"
    assert body["details"]["population"] is None
    assert body["pop"] is None
    assert body["weather"] is not None


def test_malformed_country_body_leaves_details_null(client: testclient.TestClient, stub) -> None:
    stub.responses[RESTCOUNTRIES] = [{"name": "France"}]
    response = client.get("/api/explore?lat=48.85&lng=2.35")
    assert response.status_code == 200
    body = response.json()
    assert body["level"] == LEVEL_COUNTRY
    assert body["details"] is None
    assert body["wiki"]["extract"] == "Paris is a place."


def test_best_effort_lookups_run_concurrently(client: testclient.TestClient, stub) -> None:
    """Time, summary and population start while the weather call is still in flight."""
    events: list[str] = []
    weather_body = stub.responses[OPENWEATHER]

    async def slow_weather(request: httpx.Request) -> httpx.Response:
        events.append("weather-start")
        await asyncio.sleep(0.2)
        events.append("weather-done")
        return httpx.Response(200, json=weather_body)

    def recorded(name: str, answer):
        def handler(request: httpx.Request) -> httpx.Response:
            if name != "wiki" or request.url.path.endswith("/Paris"):
                events.append(name)
            if callable(answer):
                return answer(request)
            return httpx.Response(200, json=answer)
        return handler

    stub.responses[OPENWEATHER] = slow_weather
    for name, host in (("time", TIMEZONEDB), ("wiki", WIKIPEDIA), ("pop", WIKIDATA)):
        stub.responses[host] = recorded(name, stub.responses[host])

    body = client.get("/api/explore?lat=48.85&lng=2.35").json()
    assert body["weather"] is not None
    assert body["pop"]["population"] == 2145906

    done = events.index("weather-done")
    for name in ("time", "wiki", "pop"):
        assert events.index(name) < done, events
