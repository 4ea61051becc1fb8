from __future__ import annotations

import asyncio

import pytest

from gigroster.adapters.memory import InMemorySnapshotStore
from gigroster.app import (
    Workspace,
    build_workspace,
    search_performers,
    show_roster,
)
from gigroster.config import EngineConfig
from gigroster.domain.errors import NotFoundError
from gigroster.domain.model import Item, Prop, SearchHit, SearchStatus
from tests.helpers.graph import FakeGraphClient, make_entity, membership


@pytest.fixture
def band_graph(graph: FakeGraphClient) -> FakeGraphClient:
    graph.search_results["the band"] = [
        SearchHit("Q7", "The Band", "film"),
        SearchHit("Q100", "The Band", "rock band"),
    ]
    graph.search_results["ali"] = [SearchHit("Q1", "Alice"), SearchHit("Q2", "Alina")]
    graph.add(
        make_entity("Q7", "The Band", claims={Prop.INSTANCE_OF: ["Q11424"]}),
        make_entity(
            "Q100",
            "The Band",
            claims={Prop.INSTANCE_OF: [Item.ROCK_BAND], Prop.HAS_PART: [membership("Q1")]},
        ),
        make_entity("Q1", "Alice", claims={Prop.INSTANCE_OF: [Item.HUMAN]}),
        make_entity("Q2", "Alina", claims={Prop.INSTANCE_OF: [Item.HUMAN]}),
    )
    return graph


@pytest.fixture
def workspace(band_graph: FakeGraphClient, engine_config: EngineConfig) -> Workspace:
    return build_workspace(
        graph=band_graph, store=InMemorySnapshotStore(), engine_config=engine_config
    )


def test_show_roster_by_name_picks_the_musical_group(workspace: Workspace) -> None:
    roster = asyncio.run(show_roster(workspace, "The Band"))

    assert roster.organization_id == "Q100"
    assert [performer.key for performer in roster] == ["Q1"]


def test_show_roster_unknown_name(workspace: Workspace) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(show_roster(workspace, "Nobody"))


def test_search_excludes_current_roster(workspace: Workspace) -> None:
    outcome = asyncio.run(search_performers(workspace, "ali", organization="Q100"))

    assert outcome.status is SearchStatus.OK
    assert outcome.ids == ["Q2"]


def test_workspace_components_share_the_cache(workspace: Workspace) -> None:
    assert workspace.pending._cache is workspace.cache  # noqa: SLF001
    assert workspace.debounced_search.latest is None
