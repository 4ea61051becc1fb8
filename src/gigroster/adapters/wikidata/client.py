"""Wikidata Action API and SPARQL client."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Self

import httpx
from pydantic import ValidationError as PayloadValidationError

from gigroster.adapters.http_resilience import ResilientClient
from gigroster.domain.errors import GraphUnavailableError
from gigroster.domain.ports import DEFAULT_ENTITY_PROPS

from .schema import SparqlResponse, WikidataEntitiesResponse, WikidataSearchResponse
from .sparql import render_reverse_relationship
from .translator import (
    collect_entities,
    translate_bindings,
    translate_entities,
    translate_search_hit,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Collection
    from types import TracebackType

    from pydantic import BaseModel

    from gigroster.config.http_resilience import ResilienceConfig
    from gigroster.config.wikidata import WikidataConfig
    from gigroster.domain.model import GraphEntity, SearchHit
    from gigroster.domain.ports import QueryRow, ReverseRelationshipQuery

log = getLogger(__name__)

MAX_IDS_PER_REQUEST = 50
API_PATH = "api.php"
SPARQL_PATH = "sparql"


class WikidataClient:
    """Async client implementing the ``GraphClient`` port against Wikidata.

    Used as an async context manager the underlying HTTP clients (and their
    response caches) are shared across calls; otherwise every call opens and
    closes its own client.
    """

    def __init__(
        self,
        *,
        config: WikidataConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._shared: dict[str, ResilientClient] = {}

    async def __aenter__(self) -> Self:
        for resilience in (self._config.api, self._config.sparql):
            self._shared[resilience.name] = self._client_factory(resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        shared, self._shared = self._shared, {}
        for client in shared.values():
            await client.aclose()

    async def lookup_entities(
        self,
        ids: Collection[str],
        *,
        languages: tuple[str, ...] | None = None,
        props: tuple[str, ...] = DEFAULT_ENTITY_PROPS,
    ) -> dict[str, GraphEntity]:
        unique_ids = list(dict.fromkeys(entity_id for entity_id in ids if entity_id))
        if not unique_ids:
            return {}
        languages = languages or self._config.languages

        entities: dict[str, GraphEntity] = {}
        for start in range(0, len(unique_ids), MAX_IDS_PER_REQUEST):
            chunk = unique_ids[start : start + MAX_IDS_PER_REQUEST]
            params = {
                "action": "wbgetentities",
                "ids": "|".join(chunk),
                "props": "|".join(props),
                "languages": "|".join(languages),
                "format": "json",
            }
            if "sitelinks" in props:
                params["sitefilter"] = "|".join(f"{language}wiki" for language in languages)
            response = await self._fetch(
                self._config.api,
                API_PATH,
                params,
                WikidataEntitiesResponse,
                operation="wbgetentities",
            )
            if response.error is not None:
                raise GraphUnavailableError(
                    f"wbgetentities returned {response.error.code}: {response.error.info}",
                    operation="wbgetentities",
                )
            collect_entities(entities, translate_entities(response).values())
        log.debug("Looked up %d of %d Wikidata entities", len(entities), len(unique_ids))
        return entities

    async def search_entities(
        self,
        query: str,
        *,
        limit: int = 10,
        language: str | None = None,
        type_filter: str = "item",
    ) -> list[SearchHit]:
        language = language or self._config.language
        params = {
            "action": "wbsearchentities",
            "search": query,
            "language": language,
            "uselang": language,
            "type": type_filter,
            "limit": str(limit),
            "format": "json",
        }
        response = await self._fetch(
            self._config.api,
            API_PATH,
            params,
            WikidataSearchResponse,
            operation="wbsearchentities",
        )
        if response.error is not None:
            raise GraphUnavailableError(
                f"wbsearchentities returned {response.error.code}: {response.error.info}",
                operation="wbsearchentities",
            )
        return [translate_search_hit(result) for result in response.search]

    async def query_reverse_relationship(self, query: ReverseRelationshipQuery) -> list[QueryRow]:
        sparql = render_reverse_relationship(query)
        response = await self._fetch(
            self._config.sparql,
            SPARQL_PATH,
            {"query": sparql, "format": "json"},
            SparqlResponse,
            operation="sparql",
        )
        return translate_bindings(response)

    async def _fetch[ModelT: BaseModel](
        self,
        resilience: ResilienceConfig,
        path: str,
        params: dict[str, str],
        model: type[ModelT],
        *,
        operation: str,
    ) -> ModelT:
        url = _join_url(resilience, path)
        try:
            async with asyncio.timeout(self._config.request_timeout_seconds):
                async with self._open(resilience) as client:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    payload = response.json()
            return model.model_validate(payload)
        except TimeoutError as exc:
            raise GraphUnavailableError(
                f"{operation} timed out after {self._config.request_timeout_seconds}s",
                operation=operation,
            ) from exc
        except httpx.HTTPError as exc:
            raise GraphUnavailableError(f"{operation} failed: {exc}", operation=operation) from exc
        except PayloadValidationError as exc:
            raise GraphUnavailableError(
                f"{operation} returned an unexpected payload: {exc.error_count()} errors",
                operation=operation,
            ) from exc
        except ValueError as exc:
            raise GraphUnavailableError(
                f"{operation} returned a non-JSON payload", operation=operation
            ) from exc

    @asynccontextmanager
    async def _open(self, resilience: ResilienceConfig) -> AsyncIterator[ResilientClient]:
        shared = self._shared.get(resilience.name)
        if shared is not None:
            yield shared
            return
        async with self._client_factory(resilience) as client:
            yield client


def _join_url(resilience: ResilienceConfig, path: str) -> str:
    if resilience.base_url is None:
        raise GraphUnavailableError(f"Missing base_url for {resilience.name}")
    return f"{resilience.base_url.rstrip('/')}/{path}"
