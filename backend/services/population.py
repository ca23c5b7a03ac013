"""Wikidata population lookup.

Two steps:
1. ``wbsearchentities`` resolves a free-text place name to its best-match
   item (first result only, no disambiguation).
2. A SPARQL query reads the item's population (P1082) statements, ordered
   by their point-in-time qualifier (P585) descending, and keeps the top one.

"No entity" and "no population statement" are ordinary outcomes: the
payload carries ``population: None`` and a message, and is cached like any
other answer.
"""

import logging
import re
from dataclasses import dataclass

from errors import UpstreamError
from services.cache import name_key
from services.upstream import Upstreams, get_json, require_object

logger = logging.getLogger(__name__)

WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
WIKIDATA_SPARQL_URL = "https://query.wikidata.org/sparql"
ERROR_MESSAGE = "Population lookup failed"

NO_ENTITY_MESSAGE = "No Wikidata entity found for that name"
NO_FACT_MESSAGE = "No population data found in Wikidata"

# Item ids are the only value interpolated into SPARQL.
_QID_RE = re.compile(r"^Q\d+$")

POPULATION_QUERY = """
SELECT ?population ?pointInTime WHERE {{
  wd:{qid} p:P1082 ?popStatement .
  ?popStatement ps:P1082 ?population .
  OPTIONAL {{ ?popStatement pq:P585 ?pointInTime. }}
}}
ORDER BY DESC(?pointInTime)
LIMIT 1
"""


@dataclass
class EntityReference:
    id: str
    label: str | None
    description: str | None


def _payload(name: str, entity: EntityReference | None = None, **fields) -> dict:
    payload = {
        "city": name,
        "wikidataId": entity.id if entity else None,
        "wikidataLabel": entity.label if entity else None,
        "wikidataDescription": entity.description if entity else None,
        "population": None,
        "populationPointInTime": None,
        "message": None,
    }
    payload.update(fields)
    return payload


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(float(value))
    except ValueError:
        logger.warning("Unparseable population value from Wikidata: %r", value)
        return None


async def find_entity(upstreams: Upstreams, label: str) -> EntityReference | None:
    """Search Wikidata for ``label`` and return the top hit, if any."""
    data = await get_json(
        upstreams,
        WIKIDATA_API_URL,
        service="wikidata-search",
        error_message=ERROR_MESSAGE,
        params={
            "action": "wbsearchentities",
            "search": label,
            "language": "en",
            "format": "json",
            "limit": 1,
        },
    )
    results = require_object(data, service="wikidata-search", error_message=ERROR_MESSAGE).get("search") or []
    if not isinstance(results, list):
        raise UpstreamError(ERROR_MESSAGE, service="wikidata-search", cause="Expected a list of search hits")
    if not results:
        return None

    top = results[0]
    if not isinstance(top, dict):
        raise UpstreamError(ERROR_MESSAGE, service="wikidata-search", cause="Malformed search hit")
    return EntityReference(id=top.get("id", ""), label=top.get("label"), description=top.get("description"))


def _shaped(value, kind: type):
    """``value``, or an empty ``kind`` when missing. Any other type is a malformed body."""
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise UpstreamError(
            ERROR_MESSAGE,
            service="wikidata-sparql",
            cause=f"Expected {kind.__name__}, got {type(value).__name__}",
        )
    return value


async def fetch_population_fact(upstreams: Upstreams, qid: str) -> dict | None:
    """Return ``{"population", "pointInTime"}`` for the newest P1082 statement."""
    if not _QID_RE.match(qid):
        raise UpstreamError(ERROR_MESSAGE, service="wikidata-search", cause=f"Unexpected entity id: {qid!r}")

    data = await get_json(
        upstreams,
        WIKIDATA_SPARQL_URL,
        service="wikidata-sparql",
        error_message=ERROR_MESSAGE,
        params={"query": POPULATION_QUERY.format(qid=qid), "format": "json"},
        headers={"Accept": "application/sparql-results+json"},
        total_timeout=upstreams.settings.population_timeout_seconds,
    )
    body = require_object(data, service="wikidata-sparql", error_message=ERROR_MESSAGE)
    bindings = _shaped(_shaped(body.get("results"), dict).get("bindings"), list)
    if not bindings:
        return None

    top = _shaped(bindings[0], dict)
    return {
        "population": _shaped(top.get("population"), dict).get("value"),
        "pointInTime": _shaped(top.get("pointInTime"), dict).get("value"),
    }


async def get_population(upstreams: Upstreams, name: str) -> dict:
    """Latest known population for a place name, cached per lowercased name."""
    name = name.strip()
    key = name_key("population", name)
    cached = upstreams.cache.get(key)
    if cached is not None:
        return cached

    ttl = upstreams.settings.cache_ttl_population

    entity = await find_entity(upstreams, name)
    if entity is None:
        payload = _payload(name, message=NO_ENTITY_MESSAGE)
        upstreams.cache.set(key, payload, ttl_seconds=ttl)
        return payload

    fact = await fetch_population_fact(upstreams, entity.id)
    if fact is None:
        payload = _payload(name, entity, message=NO_FACT_MESSAGE)
        upstreams.cache.set(key, payload, ttl_seconds=ttl)
        return payload

    payload = _payload(
        name,
        entity,
        population=_to_int(fact["population"]),
        populationPointInTime=fact["pointInTime"],
    )
    upstreams.cache.set(key, payload, ttl_seconds=ttl)
    return payload
