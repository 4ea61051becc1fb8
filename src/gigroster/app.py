"""Application orchestration entry points."""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from gigroster.adapters.sqlalchemy import SqlAlchemySnapshotStore
from gigroster.adapters.wikidata import WikidataClient
from gigroster.config import get_engine_config, get_wikidata_config
from gigroster.domain.errors import NotFoundError
from gigroster.domain.model import PendingAttributes, PendingEntity
from gigroster.domain.reconciliation import (
    DebouncedSearch,
    PendingEntityManager,
    PerformerSearch,
    ReconciliationCache,
    RosterResolver,
)
from gigroster.domain.reconciliation.resolver import is_item_id

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from gigroster.config import EngineConfig, WikidataConfig
    from gigroster.domain.model import Roster
    from gigroster.domain.ports import GraphClient, SnapshotStore
    from gigroster.domain.reconciliation import SearchOutcome

log = getLogger(__name__)


@dataclass(slots=True)
class Workspace:
    """Wired components sharing one graph client and one reconciliation cache."""

    graph: GraphClient
    store: SnapshotStore
    resolver: RosterResolver
    cache: ReconciliationCache
    pending: PendingEntityManager
    search: PerformerSearch
    debounced_search: DebouncedSearch


def build_workspace(
    *,
    graph: GraphClient,
    store: SnapshotStore,
    engine_config: EngineConfig,
) -> Workspace:
    resolver = RosterResolver(graph, language=engine_config.language)
    cache = ReconciliationCache(resolver, store)
    search = PerformerSearch(graph, engine_config)
    return Workspace(
        graph=graph,
        store=store,
        resolver=resolver,
        cache=cache,
        pending=PendingEntityManager(cache, language=engine_config.language),
        search=search,
        debounced_search=DebouncedSearch(
            search, debounce_seconds=engine_config.debounce_seconds
        ),
    )


@asynccontextmanager
async def open_workspace(
    *,
    graph: GraphClient | None = None,
    store: SnapshotStore | None = None,
    engine_config: EngineConfig | None = None,
    wikidata_config: WikidataConfig | None = None,
) -> AsyncIterator[Workspace]:
    """Open a workspace on the configured adapters, closing them on exit."""

    async with AsyncExitStack() as stack:
        if graph is None:
            client = WikidataClient(config=wikidata_config or get_wikidata_config())
            graph = await stack.enter_async_context(client)
        if store is None:
            sql_store = SqlAlchemySnapshotStore.from_uri()
            stack.callback(sql_store.dispose)
            store = sql_store
        yield build_workspace(
            graph=graph,
            store=store,
            engine_config=engine_config or get_engine_config(),
        )


async def show_roster(
    workspace: Workspace, organization: str, *, refresh: bool = False
) -> Roster:
    """Select an organization by id or by name and return its reconciled roster."""

    organization = organization.strip()
    if not is_item_id(organization):
        organization_id = await workspace.resolver.find_organization(organization)
        if organization_id is None:
            raise NotFoundError(organization)
        log.info("Matched %r to organization %s", organization, organization_id)
        organization = organization_id
    roster = await workspace.cache.select_organization(organization, refresh=refresh)
    snapshot = workspace.cache.snapshot
    if snapshot is not None:
        for failure in snapshot.failures:
            log.warning("Roster of %s is incomplete: %s", organization, failure)
    return roster


async def search_performers(
    workspace: Workspace,
    query: str,
    *,
    organization: str | None = None,
    domain_filter: bool = True,
) -> SearchOutcome:
    roster = None
    if organization:
        roster = await workspace.cache.select_organization(organization)
    return await workspace.search.search(query, roster, domain_filter=domain_filter)


def add_pending_performer(
    workspace: Workspace,
    name: str,
    *,
    organization: str,
    instruments: Sequence[str] = (),
    nationality: str | None = None,
) -> PendingEntity:
    return workspace.pending.add_pending(
        PendingAttributes(
            name=name,
            instruments=tuple(instruments),
            nationality=nationality,
            organization_id=organization,
        )
    )


def list_pending_performers(workspace: Workspace, organization: str) -> list[PendingEntity]:
    return workspace.pending.list_pending(organization)


def invalidate_organization(workspace: Workspace, organization: str) -> None:
    workspace.cache.invalidate(organization)
