from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import parse_qs

import httpx
import pytest

from gigroster.adapters.http_resilience import ResilienceConfig, ResilientClient
from gigroster.adapters.wikidata import WikidataClient
from gigroster.config.wikidata import cacheable_payload
from gigroster.domain.errors import GraphUnavailableError
from gigroster.domain.ports import OptionalProjection, ReverseRelationshipQuery

if TYPE_CHECKING:
    from collections.abc import Callable

    from gigroster.config import WikidataConfig

    Loader = Callable[[str], dict[str, object]]


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _params(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.url.query.decode()).items()}


def test_lookup_entities_parses_and_omits_missing(
    wikidata_config: WikidataConfig, load_wikidata_payload: Loader
) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=load_wikidata_payload("entities_band.json"))

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))
    entities = asyncio.run(client.lookup_entities(["Q999", "Q1001", "Q404404"]))

    assert set(entities) == {"Q999", "Q1001"}
    assert len(requests) == 1
    params = _params(requests[0])
    assert str(requests[0].url).startswith("https://www.wikidata.org/w/api.php")
    assert params["action"] == "wbgetentities"
    assert params["ids"] == "Q999|Q1001|Q404404"
    assert params["languages"] == "en"
    assert params["sitefilter"] == "enwiki"


def test_lookup_entities_chunks_at_fifty_ids(wikidata_config: WikidataConfig) -> None:
    chunks: list[list[str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        ids = _params(request)["ids"].split("|")
        chunks.append(ids)
        return httpx.Response(
            200, json={"entities": {entity_id: {"id": entity_id} for entity_id in ids}}
        )

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))
    ids = [f"Q{number}" for number in range(1, 121)]
    entities = asyncio.run(client.lookup_entities(ids))

    assert [len(chunk) for chunk in chunks] == [50, 50, 20]
    assert list(entities) == ids


def test_lookup_without_ids_makes_no_request(wikidata_config: WikidataConfig) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))

    assert asyncio.run(client.lookup_entities([])) == {}


def test_api_error_payload_raises_graph_unavailable(
    wikidata_config: WikidataConfig, load_wikidata_payload: Loader
) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=load_wikidata_payload("error_no_such_entity.json"))

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))

    with pytest.raises(GraphUnavailableError, match="no-such-entity") as excinfo:
        asyncio.run(client.lookup_entities(["Q0"]))
    assert excinfo.value.operation == "wbgetentities"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, text="not found"),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json={"search": "not-a-list"}),
    ],
)
def test_failures_surface_as_graph_unavailable(
    wikidata_config: WikidataConfig, response: httpx.Response
) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return response

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))

    with pytest.raises(GraphUnavailableError):
        asyncio.run(client.search_entities("kari"))


def test_transport_error_surfaces_as_graph_unavailable(wikidata_config: WikidataConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))

    with pytest.raises(GraphUnavailableError, match="wbsearchentities failed"):
        asyncio.run(client.search_entities("kari"))


def test_search_entities_returns_hits(
    wikidata_config: WikidataConfig, load_wikidata_payload: Loader
) -> None:
    captured: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(_params(request))
        return httpx.Response(200, json=load_wikidata_payload("search_performers.json"))

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))
    hits = asyncio.run(client.search_entities("kari", limit=5))

    assert [hit.id for hit in hits] == ["Q1001", "Q7000"]
    assert captured[0]["action"] == "wbsearchentities"
    assert captured[0]["search"] == "kari"
    assert captured[0]["limit"] == "5"
    assert captured[0]["type"] == "item"


def test_reverse_relationship_query_hits_sparql_endpoint(
    wikidata_config: WikidataConfig, load_wikidata_payload: Loader
) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=load_wikidata_payload("sparql_members.json"))

    client = WikidataClient(config=wikidata_config, client_factory=_make_client_factory(handler))
    query = ReverseRelationshipQuery(
        predicate="P463",
        object_id="Q888",
        subject_type="Q5",
        projections=(OptionalProjection("instrument", "P1303", with_label=True),),
    )
    rows = asyncio.run(client.query_reverse_relationship(query))

    assert len(rows) == 4
    assert rows[0]["member"] == "Q2001"
    assert str(requests[0].url).startswith("https://query.wikidata.org/sparql")
    assert "wd:Q888" in _params(requests[0])["query"]


def test_shared_clients_are_closed_on_exit(
    wikidata_config: WikidataConfig, load_wikidata_payload: Loader
) -> None:
    opened: list[ResilientClient] = []
    factory = _make_client_factory(
        lambda _request: httpx.Response(200, json=load_wikidata_payload("search_performers.json"))
    )

    def tracking_factory(resilience: ResilienceConfig) -> ResilientClient:
        client = factory(resilience)
        opened.append(client)
        return client

    async def scenario() -> None:
        client = WikidataClient(config=wikidata_config, client_factory=tracking_factory)
        async with client:
            await client.search_entities("kari")
            await client.search_entities("kari nordmann")

    asyncio.run(scenario())

    assert len(opened) == 2
    assert all(client._client.is_closed for client in opened)  # noqa: SLF001  # type: ignore[reportPrivateUsage]


def test_error_responses_are_not_cacheable() -> None:
    assert cacheable_payload({"entities": {}})
    assert not cacheable_payload({"error": {"code": "maxlag"}})
