"""Per-organization reconciliation cache with write-through persistence.

The active organization's state is an immutable :class:`OrganizationSnapshot`.
Every transition is a plain function from snapshot to snapshot, committed with a
single assignment and written through to the :class:`SnapshotStore`. Resolutions
and promotions are serialized per organization key; a resolution that completes
after the active key changed is discarded.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter
from pydantic import ValidationError as PayloadValidationError

from gigroster.domain.errors import (
    GraphUnavailableError,
    NotFoundError,
    RosterError,
    ValidationError,
)
from gigroster.domain.model import (
    CacheState,
    PendingEntity,
    PendingKind,
    Performer,
    Roster,
)

from .merge import merge_performers
from .projection import project_pending

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from gigroster.domain.ports import SnapshotStore

    from .resolver import RosterResolver

log = getLogger(__name__)

ROSTER_KEY = "band-members-{organization_id}"
LINKED_KEY = "linked-band-members-{organization_id}"
PENDING_KEY = "pending-band-members-{organization_id}"
SELECTION_KEY = "selected-band-members-{organization_id}"

_PERFORMERS = TypeAdapter(list[Performer])
_PENDING = TypeAdapter(list[PendingEntity])
_SELECTION = TypeAdapter(list[str])

type Transition = Callable[[OrganizationSnapshot], OrganizationSnapshot]


@dataclass(frozen=True, slots=True)
class OrganizationSnapshot:
    """Cache state of one organization.

    ``performers`` holds the last resolver output and is replaced wholesale by
    each resolution. ``linked`` holds performers linked from search or promoted
    from pending entries; they survive resolutions and win over resolver values.
    """

    organization_id: str
    state: CacheState = CacheState.EMPTY
    performers: tuple[Performer, ...] = ()
    linked: tuple[Performer, ...] = ()
    pending: tuple[PendingEntity, ...] = ()
    selected: tuple[str, ...] = ()
    failures: tuple[RosterError, ...] = ()

    def roster(self) -> Roster:
        """Resolved and linked performers followed by the open pending entries.

        A pending entry whose external id is already on the roster is left out.
        """

        known = merge_performers(self.performers, self.linked)
        known_ids = {performer.id for performer in known if performer.id}
        pending = [
            project_pending(entity)
            for entity in self.pending
            if entity.kind is PendingKind.PERFORMER
            and not (entity.entity_id and entity.entity_id in known_ids)
        ]
        return Roster(
            organization_id=self.organization_id,
            performers=tuple(merge_performers(known, pending)),
        )

    def find_pending(self, local_id: str) -> PendingEntity | None:
        for entity in self.pending:
            if entity.local_id == local_id:
                return entity
        return None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def with_resolution(
    snapshot: OrganizationSnapshot,
    performers: Iterable[Performer],
    failures: Iterable[RosterError] = (),
) -> OrganizationSnapshot:
    """Replace the resolver output.

    A resolution that produced nothing because the graph was unavailable keeps
    the previous performers and leaves an unresolved organization ``empty``.
    """

    performers = tuple(performers)
    failures = tuple(failures)
    if not performers and any(isinstance(error, GraphUnavailableError) for error in failures):
        state = CacheState.RESOLVED if snapshot.performers else CacheState.EMPTY
        return replace(snapshot, state=state, failures=failures)
    return replace(snapshot, state=CacheState.RESOLVED, performers=performers, failures=failures)


def with_linked(
    snapshot: OrganizationSnapshot, performers: Iterable[Performer]
) -> OrganizationSnapshot:
    return replace(snapshot, linked=tuple(merge_performers(snapshot.linked, performers)))


def with_pending(snapshot: OrganizationSnapshot, entity: PendingEntity) -> OrganizationSnapshot:
    """Insert ``entity`` or replace the entry with the same local id in place."""

    if snapshot.find_pending(entity.local_id) is None:
        return replace(snapshot, pending=(*snapshot.pending, entity))
    return replace(
        snapshot,
        pending=tuple(
            entity if current.local_id == entity.local_id else current
            for current in snapshot.pending
        ),
    )


def with_created(snapshot: OrganizationSnapshot, entity: PendingEntity) -> OrganizationSnapshot:
    """Record a created pending entity; its selection follows it to the graph id."""

    updated = with_pending(snapshot, entity)
    if entity.entity_id is None:
        return updated
    selected = tuple(
        dict.fromkeys(
            entity.entity_id if key == entity.local_id else key for key in updated.selected
        )
    )
    return replace(updated, selected=selected)


def without_pending(snapshot: OrganizationSnapshot, local_id: str) -> OrganizationSnapshot:
    return replace(
        snapshot,
        pending=tuple(entity for entity in snapshot.pending if entity.local_id != local_id),
        selected=tuple(key for key in snapshot.selected if key != local_id),
    )


def with_selection(
    snapshot: OrganizationSnapshot, key: str, *, selected: bool
) -> OrganizationSnapshot:
    keys = tuple(current for current in snapshot.selected if current != key)
    return replace(snapshot, selected=(*keys, key) if selected else keys)


def with_promotion(
    snapshot: OrganizationSnapshot, local_id: str, performer: Performer
) -> OrganizationSnapshot:
    """Swap a pending entry for its resolved performer, re-pointing the selection."""

    selected = tuple(
        dict.fromkeys(performer.key if key == local_id else key for key in snapshot.selected)
    )
    return replace(
        snapshot,
        linked=tuple(merge_performers(snapshot.linked, [performer])),
        pending=tuple(entity for entity in snapshot.pending if entity.local_id != local_id),
        selected=selected,
    )


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ReconciliationCache:
    """Single source of truth for the active organization's roster."""

    def __init__(self, resolver: RosterResolver, store: SnapshotStore | None = None) -> None:
        self._resolver = resolver
        self._store = store
        # stands in for the store when none is configured
        self._snapshots: dict[str, OrganizationSnapshot] = {}
        self._active: OrganizationSnapshot | None = None
        self._generation = 0
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def active_organization(self) -> str | None:
        return self._active.organization_id if self._active else None

    @property
    def snapshot(self) -> OrganizationSnapshot | None:
        return self._active

    @property
    def state(self) -> CacheState:
        return self._active.state if self._active else CacheState.EMPTY

    def roster(self) -> Roster:
        active = self._require_active()
        return active.roster()

    def selected_performers(self) -> tuple[Performer, ...]:
        active = self._require_active()
        roster = active.roster()
        return tuple(
            performer for key in active.selected if (performer := roster.get(key)) is not None
        )

    async def select_organization(self, organization_id: str, *, refresh: bool = False) -> Roster:
        """Activate ``organization_id``, restoring or resolving its roster.

        A persisted roster is reused without network access unless ``refresh``.
        """

        organization_id = organization_id.strip()
        if not organization_id:
            raise ValidationError("Organization id must not be blank")

        if self._active is None or self._active.organization_id != organization_id:
            self._generation += 1
            restored = self.load(organization_id)
            log.debug("Switching active organization to %s (%s)", organization_id, restored.state)
            self._active = restored
        generation = self._generation

        async with self._lock_for(organization_id):
            current = self._current(organization_id, generation)
            if current is None:
                return self.load(organization_id).roster()
            if current.state is CacheState.RESOLVED and not refresh:
                return current.roster()

            self._commit(replace(current, state=CacheState.RESOLVING))
            resolution = await self._resolver.resolve(organization_id)

            current = self._current(organization_id, generation)
            if current is None:
                log.info("Discarding stale resolution for %s", organization_id)
                return Roster(organization_id=organization_id, performers=resolution.performers)
            committed = self._commit(
                with_resolution(current, resolution.performers, resolution.failures)
            )
            return committed.roster()

    def link_performers(self, performers: Iterable[Performer]) -> Roster:
        """Merge performers picked from search or manual linking into the active roster."""

        performers = list(performers)
        return self._commit(with_linked(self._require_active(), performers)).roster()

    def select_performer(self, key: str) -> None:
        active = self._require_active()
        if key not in active.roster():
            raise NotFoundError(key)
        self._commit(with_selection(active, key, selected=True))

    def deselect_performer(self, key: str) -> None:
        self._commit(with_selection(self._require_active(), key, selected=False))

    def invalidate(self, organization_id: str) -> None:
        """Forget everything stored for ``organization_id``."""

        organization_id = organization_id.strip()
        self._snapshots.pop(organization_id, None)
        if self._store is not None:
            for template in (ROSTER_KEY, LINKED_KEY, PENDING_KEY, SELECTION_KEY):
                self._store.clear(template.format(organization_id=organization_id))
        if self._active is not None and self._active.organization_id == organization_id:
            self._generation += 1
            self._active = OrganizationSnapshot(organization_id=organization_id)
        log.info("Invalidated cached roster of %s", organization_id)

    def update(self, organization_id: str, transition: Transition) -> OrganizationSnapshot:
        """Apply ``transition`` to the snapshot of ``organization_id``.

        The active snapshot is committed in memory; any other organization is
        loaded from the store, transformed and written back.
        """

        if self._active is not None and self._active.organization_id == organization_id:
            return self._commit(transition(self._active))
        updated = transition(self.load(organization_id))
        self._persist(updated)
        return updated

    async def update_locked(
        self, organization_id: str, transition: Transition
    ) -> OrganizationSnapshot:
        async with self._lock_for(organization_id):
            return self.update(organization_id, transition)

    def load(self, organization_id: str) -> OrganizationSnapshot:
        """Snapshot of ``organization_id``: the active one, else the persisted one."""

        if self._active is not None and self._active.organization_id == organization_id:
            return self._active
        snapshot = OrganizationSnapshot(organization_id=organization_id)
        if self._store is None:
            return self._snapshots.get(organization_id, snapshot)

        performers = self._read(ROSTER_KEY, organization_id, _PERFORMERS)
        linked = self._read(LINKED_KEY, organization_id, _PERFORMERS)
        pending = self._read(PENDING_KEY, organization_id, _PENDING)
        selected = self._read(SELECTION_KEY, organization_id, _SELECTION)
        return replace(
            snapshot,
            state=CacheState.EMPTY if performers is None else CacheState.RESOLVED,
            performers=tuple(performers or ()),
            linked=tuple(linked or ()),
            pending=tuple(pending or ()),
            selected=tuple(selected or ()),
        )

    def _commit(self, snapshot: OrganizationSnapshot) -> OrganizationSnapshot:
        self._active = snapshot
        self._persist(snapshot)
        return snapshot

    def _persist(self, snapshot: OrganizationSnapshot) -> None:
        organization_id = snapshot.organization_id
        if self._store is None:
            if snapshot.state is CacheState.RESOLVING:
                # an interrupted resolution leaves the previous outcome in place
                state = CacheState.RESOLVED if snapshot.performers else CacheState.EMPTY
                snapshot = replace(snapshot, state=state)
            self._snapshots[organization_id] = snapshot
            return

        roster_key = ROSTER_KEY.format(organization_id=organization_id)
        if snapshot.state is CacheState.RESOLVED:
            self._store.set(
                roster_key, _PERFORMERS.dump_python(list(snapshot.performers), mode="json")
            )
        elif snapshot.state is CacheState.EMPTY:
            self._store.clear(roster_key)
        self._store.set(
            LINKED_KEY.format(organization_id=organization_id),
            _PERFORMERS.dump_python(list(snapshot.linked), mode="json"),
        )
        self._store.set(
            PENDING_KEY.format(organization_id=organization_id),
            _PENDING.dump_python(list(snapshot.pending), mode="json"),
        )
        self._store.set(
            SELECTION_KEY.format(organization_id=organization_id),
            _SELECTION.dump_python(list(snapshot.selected), mode="json"),
        )

    def _read[T](self, template: str, organization_id: str, adapter: TypeAdapter[T]) -> T | None:
        if self._store is None:
            return None
        key = template.format(organization_id=organization_id)
        payload = self._store.get(key)
        if payload is None:
            return None
        try:
            return adapter.validate_python(payload)
        except PayloadValidationError as exc:
            log.warning("Dropping unreadable snapshot %s: %d errors", key, exc.error_count())
            self._store.clear(key)
            return None

    def _current(self, organization_id: str, generation: int) -> OrganizationSnapshot | None:
        active = self._active
        if active is None or active.organization_id != organization_id:
            return None
        if generation != self._generation:
            return None
        return active

    def _require_active(self) -> OrganizationSnapshot:
        if self._active is None:
            raise ValidationError("No organization is selected")
        return self._active

    def _lock_for(self, organization_id: str) -> asyncio.Lock:
        return self._locks.setdefault(organization_id, asyncio.Lock())
