"""Performer search with domain filtering and keystroke debouncing."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from gigroster.config.engine import EngineConfig
from gigroster.domain.errors import GraphUnavailableError
from gigroster.domain.model import PERFORMER_TYPES, Performer, Prop, SearchStatus
from gigroster.domain.model.vocabulary import WIKIDATA_ENTITY_URL

from .projection import project_entity
from .resolver import is_item_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Collection, Iterable

    from gigroster.domain.model import GraphEntity, Roster, SearchHit
    from gigroster.domain.ports import GraphClient

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    query: str
    status: SearchStatus
    performers: tuple[Performer, ...] = ()
    sequence: int = 0
    error: str | None = None

    @property
    def ids(self) -> list[str]:
        return [performer.key for performer in self.performers]


class PerformerSearch:
    """Free-text performer search against the graph.

    Hits already on the roster or explicitly excluded are dropped. With domain
    filtering on, hits classified as something other than a person or a musical
    group are dropped; unclassified hits are kept.
    """

    def __init__(self, graph: GraphClient, config: EngineConfig | None = None) -> None:
        self._graph = graph
        self._config = config or EngineConfig()

    @property
    def min_query_length(self) -> int:
        return self._config.min_query_length

    async def search(
        self,
        query: str,
        roster: Roster | None = None,
        *,
        exclude: Collection[str] = (),
        domain_filter: bool = True,
    ) -> SearchOutcome:
        query = query.strip()
        if len(query) < self._config.min_query_length:
            return SearchOutcome(query=query, status=SearchStatus.SKIPPED)

        language = self._config.language
        try:
            hits = await self._graph.search_entities(
                query, limit=self._config.search_limit, language=language
            )
        except GraphUnavailableError as exc:
            log.warning("Search for %r failed: %s", query, exc)
            return SearchOutcome(query=query, status=SearchStatus.FAILED, error=str(exc))

        excluded = set(exclude) | (roster.ids if roster is not None else set())
        hits = [hit for hit in hits if hit.id not in excluded]
        if not hits:
            return SearchOutcome(query=query, status=SearchStatus.OK)

        try:
            entities = await self._graph.lookup_entities(
                [hit.id for hit in hits], languages=(language,)
            )
        except GraphUnavailableError as exc:
            log.warning("Classifying results for %r failed: %s", query, exc)
            return SearchOutcome(
                query=query,
                status=SearchStatus.DEGRADED,
                performers=tuple(_basic_performer(hit) for hit in hits),
                error=str(exc),
            )

        kept: list[SearchHit] = []
        for hit in hits:
            entity = entities.get(hit.id)
            if domain_filter and entity is not None and not _is_performer(entity):
                log.debug("Dropping non-performer search hit %s", hit.id)
                continue
            kept.append(hit)

        labels = await self._labels_for(entities.get(hit.id) for hit in kept)
        performers = tuple(
            project_entity(entity, labels=labels, language=language)
            if (entity := entities.get(hit.id)) is not None
            else _basic_performer(hit)
            for hit in kept
        )
        return SearchOutcome(query=query, status=SearchStatus.OK, performers=performers)

    async def _labels_for(self, entities: Iterable[GraphEntity | None]) -> dict[str, str]:
        referenced: dict[str, None] = {}
        for entity in entities:
            if entity is None:
                continue
            referenced.update(dict.fromkeys(entity.claim_values(Prop.INSTRUMENT)))
            referenced.update(dict.fromkeys(entity.claim_values(Prop.COUNTRY_OF_CITIZENSHIP)))
        ids = [identifier for identifier in referenced if is_item_id(identifier)]
        if not ids:
            return {}
        language = self._config.language
        try:
            labelled = await self._graph.lookup_entities(
                ids, languages=(language,), props=("labels",)
            )
        except GraphUnavailableError as exc:
            log.warning("Label lookup for search results failed: %s", exc)
            return {}
        return {
            entity_id: label
            for entity_id, entity in labelled.items()
            if (label := entity.label(language))
        }


class DebouncedSearch:
    """Debounce keystroke-driven searches with a sequence-number guard.

    Each submission waits for the quiet period and only dispatches if no newer
    submission arrived meanwhile. A result that lands after a newer submission is
    returned as ``stale`` and does not replace :attr:`latest`.
    """

    def __init__(
        self,
        search: PerformerSearch,
        *,
        debounce_seconds: float = 0.3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._search = search
        self._debounce_seconds = debounce_seconds
        self._sleep = sleep
        self._sequence = 0
        self.latest: SearchOutcome | None = None

    @property
    def sequence(self) -> int:
        return self._sequence

    async def submit(
        self,
        query: str,
        roster: Roster | None = None,
        *,
        exclude: Collection[str] = (),
        domain_filter: bool = True,
    ) -> SearchOutcome:
        self._sequence += 1
        sequence = self._sequence

        if len(query.strip()) < self._search.min_query_length:
            outcome = SearchOutcome(
                query=query.strip(), status=SearchStatus.SKIPPED, sequence=sequence
            )
            self.latest = outcome
            return outcome

        await self._sleep(self._debounce_seconds)
        if sequence != self._sequence:
            return SearchOutcome(query=query.strip(), status=SearchStatus.STALE, sequence=sequence)

        outcome = replace(
            await self._search.search(
                query, roster, exclude=exclude, domain_filter=domain_filter
            ),
            sequence=sequence,
        )
        if sequence != self._sequence:
            log.debug("Discarding stale results for %r", outcome.query)
            return replace(outcome, status=SearchStatus.STALE, performers=())
        self.latest = outcome
        return outcome


def _is_performer(entity: GraphEntity) -> bool:
    types = entity.instance_of()
    return not types or bool(types & PERFORMER_TYPES)


def _basic_performer(hit: SearchHit) -> Performer:
    return Performer(
        id=hit.id,
        name=hit.label or hit.id,
        wikidata_url=WIKIDATA_ENTITY_URL.format(id=hit.id),
        description=hit.description,
    )
