"""Lifecycle of performers and organizations that do not exist in the graph yet."""

from __future__ import annotations

import time
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from gigroster.domain.errors import NotFoundError, ValidationError
from gigroster.domain.model import (
    GraphEntity,
    PendingAttributes,
    PendingEntity,
    PendingKind,
    PendingStatus,
)

from .cache import with_created, with_pending, with_promotion, without_pending
from .projection import dedupe, derive_description, project_entity
from .resolver import is_item_id

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from gigroster.domain.model import Performer

    from .cache import ReconciliationCache

log = getLogger(__name__)

_TRANSITIONS: dict[PendingStatus, frozenset[PendingStatus]] = {
    PendingStatus.PENDING: frozenset({PendingStatus.CREATING, PendingStatus.FAILED}),
    PendingStatus.CREATING: frozenset({PendingStatus.CREATED, PendingStatus.FAILED}),
    PendingStatus.FAILED: frozenset({PendingStatus.CREATING}),
    PendingStatus.CREATED: frozenset(),
}


class LocalIdGenerator:
    """``pending-<kind>-<milliseconds>``, strictly increasing within a process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0

    def __call__(self, kind: PendingKind) -> str:
        stamp = max(int(self._clock() * 1000), self._last + 1)
        self._last = stamp
        return f"pending-{kind}-{stamp}"


class PendingEntityManager:
    def __init__(
        self,
        cache: ReconciliationCache,
        *,
        id_generator: Callable[[PendingKind], str] | None = None,
        language: str = "en",
    ) -> None:
        self._cache = cache
        self._next_id = id_generator or LocalIdGenerator()
        self._language = language
        self._organizations: dict[str, str] = {}

    def add_pending(
        self,
        attributes: PendingAttributes,
        *,
        kind: PendingKind = PendingKind.PERFORMER,
    ) -> PendingEntity:
        """Register a new pending entity under its parent organization.

        The parent defaults to the active organization. A pending organization
        is registered under its own local id.
        """

        name = attributes.name.strip() if attributes.name else ""
        if not name:
            raise ValidationError("Pending entity requires a display name")

        local_id = self._next_id(kind)
        parent_id = attributes.organization_id or self._cache.active_organization
        if kind is PendingKind.ORGANIZATION:
            organization_id = local_id
        elif parent_id is None:
            raise ValidationError("Pending performer requires a parent organization")
        else:
            organization_id = parent_id

        entity = PendingEntity(
            local_id=local_id,
            kind=kind,
            attributes=replace(
                attributes,
                name=name,
                instruments=dedupe(attributes.instruments),
                organization_id=parent_id if kind is PendingKind.PERFORMER else None,
            ),
        )
        self._cache.update(organization_id, lambda snapshot: with_pending(snapshot, entity))
        self._organizations[local_id] = organization_id
        log.info("Added pending %s %r as %s", kind, name, local_id)
        return entity

    def mark_creating(self, local_id: str) -> PendingEntity:
        return self._transition(local_id, PendingStatus.CREATING)

    def mark_created(self, local_id: str, entity_id: str) -> PendingEntity:
        """Record the graph id the entity was created under, ahead of :meth:`promote`."""

        if not is_item_id(entity_id):
            raise ValidationError(f"Not a graph item id: {entity_id!r}")
        return self._transition(local_id, PendingStatus.CREATED, entity_id=entity_id)

    def mark_failed(self, local_id: str, reason: str) -> PendingEntity:
        return self._transition(local_id, PendingStatus.FAILED, error=reason)

    async def promote(
        self, local_id: str, resolved: GraphEntity | str, *, labels: Mapping[str, str] | None = None
    ) -> Performer:
        """Replace a pending entry by the graph entity it became.

        Removal of the pending entry, insertion of the resolved performer and the
        selection re-pointing happen in one cache transition.
        """

        entity = resolved if isinstance(resolved, GraphEntity) else GraphEntity(id=resolved)
        if not is_item_id(entity.id):
            raise ValidationError(f"Cannot promote to non-graph identifier {entity.id!r}")

        organization_id = self._organization_of(local_id)
        pending = self._find(organization_id, local_id)
        if pending.entity_id is not None and pending.entity_id != entity.id:
            raise ValidationError(
                f"Pending entity {local_id} was created as {pending.entity_id}, not {entity.id}"
            )
        performer = self._promoted_performer(pending, entity, labels or {})

        if pending.kind is PendingKind.ORGANIZATION:
            await self._cache.update_locked(
                organization_id, lambda snapshot: without_pending(snapshot, local_id)
            )
        else:
            await self._cache.update_locked(
                organization_id,
                lambda snapshot: with_promotion(snapshot, local_id, performer),
            )
        self._organizations.pop(local_id, None)
        log.info("Promoted %s to %s", local_id, entity.id)
        return performer

    def remove_pending(self, local_id: str) -> None:
        organization_id = self._organization_of(local_id)
        self._find(organization_id, local_id)
        self._cache.update(organization_id, lambda snapshot: without_pending(snapshot, local_id))
        self._organizations.pop(local_id, None)

    def list_pending(self, organization_id: str | None = None) -> list[PendingEntity]:
        organization_id = organization_id or self._cache.active_organization
        if organization_id is None:
            return []
        snapshot = self._cache.load(organization_id)
        return [
            entity
            for entity in snapshot.pending
            if entity.organization_id in {organization_id, None}
        ]

    def _transition(
        self,
        local_id: str,
        status: PendingStatus,
        *,
        error: str | None = None,
        entity_id: str | None = None,
    ) -> PendingEntity:
        organization_id = self._organization_of(local_id)
        current = self._find(organization_id, local_id)
        if status not in _TRANSITIONS[current.status]:
            raise ValidationError(f"Cannot move {local_id} from {current.status} to {status}")
        updated = replace(
            current, status=status, error=error, entity_id=entity_id or current.entity_id
        )
        transition = with_created if status is PendingStatus.CREATED else with_pending
        self._cache.update(organization_id, lambda snapshot: transition(snapshot, updated))
        return updated

    def _promoted_performer(
        self, pending: PendingEntity, entity: GraphEntity, labels: Mapping[str, str]
    ) -> Performer:
        attributes = pending.attributes
        organization_id = attributes.organization_id
        projected = project_entity(
            entity,
            labels=labels,
            tenure=attributes.tenure,
            organization_id=organization_id,
            language=self._language,
        )
        instruments = dedupe((*projected.instruments, *attributes.instruments))
        nationality = projected.nationality or attributes.nationality
        return replace(
            projected,
            name=entity.label(self._language) or attributes.name,
            instruments=instruments,
            nationality=nationality,
            description=entity.description(self._language)
            or attributes.description
            or derive_description(nationality, instruments),
        )

    def _organization_of(self, local_id: str) -> str:
        organization_id = self._organizations.get(local_id)
        if organization_id is not None:
            return organization_id
        active = self._cache.snapshot
        if active is not None and active.find_pending(local_id) is not None:
            return active.organization_id
        raise NotFoundError(local_id)

    def _find(self, organization_id: str, local_id: str) -> PendingEntity:
        entity = self._cache.load(organization_id).find_pending(local_id)
        if entity is None:
            raise NotFoundError(local_id)
        return entity
