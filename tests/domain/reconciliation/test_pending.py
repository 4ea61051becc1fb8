from __future__ import annotations

import asyncio
import re

import pytest

from gigroster.adapters.memory import InMemorySnapshotStore
from gigroster.domain.errors import NotFoundError, ValidationError
from gigroster.domain.model import (
    PendingAttributes,
    PendingKind,
    PendingStatus,
    Prop,
    Provenance,
)
from gigroster.domain.reconciliation import (
    LocalIdGenerator,
    PendingEntityManager,
    ReconciliationCache,
    RosterResolver,
)
from tests.helpers.graph import FakeGraphClient, make_entity, membership


@pytest.fixture
def band_graph(graph: FakeGraphClient) -> FakeGraphClient:
    graph.add(
        make_entity("Q100", "The Band", claims={Prop.HAS_PART: [membership("Q1")]}),
        make_entity("Q1", "Alice"),
    )
    return graph


@pytest.fixture
def cache(band_graph: FakeGraphClient, store: InMemorySnapshotStore) -> ReconciliationCache:
    cache = ReconciliationCache(RosterResolver(band_graph), store)
    asyncio.run(cache.select_organization("Q100"))
    return cache


@pytest.fixture
def manager(cache: ReconciliationCache) -> PendingEntityManager:
    return PendingEntityManager(cache)


def test_local_ids_are_strictly_increasing() -> None:
    generate = LocalIdGenerator(clock=lambda: 1_700_000_000.0)

    first = generate(PendingKind.PERFORMER)
    second = generate(PendingKind.PERFORMER)
    third = generate(PendingKind.ORGANIZATION)

    assert first == "pending-performer-1700000000000"
    assert second == "pending-performer-1700000000001"
    assert third == "pending-organization-1700000000002"


@pytest.mark.parametrize("name", ["", "   "])
def test_add_pending_requires_a_name(manager: PendingEntityManager, name: str) -> None:
    with pytest.raises(ValidationError):
        manager.add_pending(PendingAttributes(name=name))


def test_add_pending_requires_a_parent_organization() -> None:
    manager = PendingEntityManager(ReconciliationCache(RosterResolver(FakeGraphClient())))

    with pytest.raises(ValidationError):
        manager.add_pending(PendingAttributes(name="Jane Doe"))


def test_add_pending_joins_the_active_roster(
    manager: PendingEntityManager, cache: ReconciliationCache
) -> None:
    pending = manager.add_pending(
        PendingAttributes(name="  Jane Doe ", instruments=("bass", "bass"), nationality="Norway")
    )

    assert re.fullmatch(r"pending-performer-\d+", pending.local_id)
    assert pending.status is PendingStatus.PENDING
    assert pending.name == "Jane Doe"
    assert pending.organization_id == "Q100"
    assert pending.attributes.instruments == ("bass",)
    assert manager.list_pending() == [pending]

    projected = cache.roster().get(pending.local_id)
    assert projected is not None
    assert projected.provenance is Provenance.PENDING
    assert projected.id is None
    assert projected.description == "Norwegian bassist"


def test_add_pending_for_another_organization_is_persisted(
    manager: PendingEntityManager, cache: ReconciliationCache, store: InMemorySnapshotStore
) -> None:
    pending = manager.add_pending(PendingAttributes(name="Sam Roe", organization_id="Q200"))

    assert cache.active_organization == "Q100"
    assert pending.local_id not in cache.roster()
    assert [entity.local_id for entity in manager.list_pending("Q200")] == [pending.local_id]
    stored = store.get("pending-band-members-Q200")
    assert isinstance(stored, list)
    assert stored[0]["local_id"] == pending.local_id


def test_lifecycle_transitions(manager: PendingEntityManager) -> None:
    pending = manager.add_pending(PendingAttributes(name="Jane Doe"))

    assert manager.mark_creating(pending.local_id).status is PendingStatus.CREATING
    failed = manager.mark_failed(pending.local_id, "edit rejected")
    assert failed.status is PendingStatus.FAILED
    assert failed.error == "edit rejected"
    retried = manager.mark_creating(pending.local_id)
    assert retried.status is PendingStatus.CREATING
    assert retried.error is None

    with pytest.raises(ValidationError):
        manager.mark_creating(pending.local_id)


def test_mark_created_moves_the_entry_to_its_graph_id(
    manager: PendingEntityManager, cache: ReconciliationCache
) -> None:
    pending = manager.add_pending(PendingAttributes(name="Jane Doe"))
    cache.select_performer(pending.local_id)
    manager.mark_creating(pending.local_id)

    created = manager.mark_created(pending.local_id, "Q123")

    assert created.status is PendingStatus.CREATED
    assert created.entity_id == "Q123"
    roster = cache.roster()
    assert [entry.key for entry in roster] == ["Q1", "Q123"]
    assert roster.get("Q123") is not None
    assert roster.get("Q123").provenance is Provenance.PENDING  # type: ignore[union-attr]
    assert [entry.key for entry in cache.selected_performers()] == ["Q123"]


def test_mark_created_requires_a_graph_id(manager: PendingEntityManager) -> None:
    pending = manager.add_pending(PendingAttributes(name="Jane Doe"))
    manager.mark_creating(pending.local_id)

    with pytest.raises(ValidationError):
        manager.mark_created(pending.local_id, "jane-doe")

    assert manager.list_pending()[0].status is PendingStatus.CREATING


def test_promotion_must_match_the_created_id(
    manager: PendingEntityManager, cache: ReconciliationCache
) -> None:
    pending = manager.add_pending(PendingAttributes(name="Jane Doe"))
    manager.mark_creating(pending.local_id)
    manager.mark_created(pending.local_id, "Q123")

    with pytest.raises(ValidationError):
        asyncio.run(manager.promote(pending.local_id, "Q124"))

    performer = asyncio.run(manager.promote(pending.local_id, "Q123"))

    assert performer.provenance is Provenance.RESOLVED
    assert cache.roster().get("Q123") == performer
    assert manager.list_pending() == []


def test_promotion_for_an_inactive_organization_survives_resolution(
    graph: FakeGraphClient, store: InMemorySnapshotStore
) -> None:
    graph.add(
        make_entity("Q1", "Band Q", claims={Prop.HAS_PART: [membership("Q10")]}),
        make_entity("Q10", "Member"),
    )
    cache = ReconciliationCache(RosterResolver(graph), store)
    manager = PendingEntityManager(cache)
    pending = manager.add_pending(PendingAttributes(name="Jane Doe", organization_id="Q1"))

    asyncio.run(manager.promote(pending.local_id, "Q123"))
    roster = asyncio.run(cache.select_organization("Q1"))

    assert [entry.key for entry in roster] == ["Q10", "Q123"]
    assert manager.list_pending("Q1") == []


def test_unknown_local_id_is_not_found(manager: PendingEntityManager) -> None:
    with pytest.raises(NotFoundError):
        manager.mark_creating("pending-performer-1")
    with pytest.raises(NotFoundError):
        manager.remove_pending("pending-performer-1")


def test_promotion_replaces_pending_entry(
    manager: PendingEntityManager, cache: ReconciliationCache
) -> None:
    pending = manager.add_pending(PendingAttributes(name="Jane Doe", instruments=("drums",)))
    cache.select_performer("Q1")
    cache.select_performer(pending.local_id)
    manager.mark_creating(pending.local_id)

    created = make_entity(
        "Q123",
        "Jane Doe",
        claims={Prop.INSTRUMENT: ["Q5"], Prop.COUNTRY_OF_CITIZENSHIP: ["Q20"]},
    )
    performer = asyncio.run(
        manager.promote(pending.local_id, created, labels={"Q5": "percussion", "Q20": "Norway"})
    )

    assert performer.id == "Q123"
    assert performer.provenance is Provenance.RESOLVED
    assert performer.instruments == ("percussion", "drums")
    assert performer.nationality == "Norway"
    assert performer.organization_id == "Q100"
    assert manager.list_pending() == []

    roster = cache.roster()
    assert [entry.key for entry in roster] == ["Q1", "Q123"]
    assert pending.local_id not in roster
    assert [entry.key for entry in cache.selected_performers()] == ["Q1", "Q123"]


def test_promotion_by_id_keeps_pending_details(
    manager: PendingEntityManager, cache: ReconciliationCache
) -> None:
    pending = manager.add_pending(
        PendingAttributes(name="Jane Doe", description="session drummer")
    )

    performer = asyncio.run(manager.promote(pending.local_id, "Q123"))

    assert performer.name == "Jane Doe"
    assert performer.description == "session drummer"
    assert cache.roster().get("Q123") == performer


def test_promotion_rejects_non_graph_identifiers(manager: PendingEntityManager) -> None:
    pending = manager.add_pending(PendingAttributes(name="Jane Doe"))

    with pytest.raises(ValidationError):
        asyncio.run(manager.promote(pending.local_id, pending.local_id))


def test_remove_pending_drops_entry_and_selection(
    manager: PendingEntityManager, cache: ReconciliationCache
) -> None:
    pending = manager.add_pending(PendingAttributes(name="Jane Doe"))
    cache.select_performer(pending.local_id)

    manager.remove_pending(pending.local_id)

    assert manager.list_pending() == []
    assert pending.local_id not in cache.roster()
    assert cache.selected_performers() == ()


def test_pending_organization_is_tracked_under_its_local_id(
    manager: PendingEntityManager, store: InMemorySnapshotStore
) -> None:
    organization = manager.add_pending(
        PendingAttributes(name="New Band"), kind=PendingKind.ORGANIZATION
    )

    assert re.fullmatch(r"pending-organization-\d+", organization.local_id)
    assert organization.organization_id is None
    assert manager.list_pending(organization.local_id) == [organization]

    asyncio.run(manager.promote(organization.local_id, "Q555"))

    assert manager.list_pending(organization.local_id) == []
    assert store.get(f"pending-band-members-{organization.local_id}") == []
