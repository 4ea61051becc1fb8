"""Performer, pending entity and roster value objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from gigroster.domain.model.enums import PendingKind, PendingStatus, Provenance

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True, slots=True)
class Tenure:
    start: int | None = None
    end: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None


@dataclass(frozen=True, slots=True, kw_only=True)
class Performer:
    """Roster-facing projection of a graph entity or a pending entity."""

    id: str | None = None
    local_id: str | None = None
    name: str
    provenance: Provenance = Provenance.RESOLVED
    wikidata_url: str | None = None
    wikipedia_url: str | None = None
    instruments: tuple[str, ...] = ()
    tenure: Tenure | None = None
    nationality: str | None = None
    birth_year: int | None = None
    image_url: str | None = None
    description: str | None = None
    organization_id: str | None = None

    def __post_init__(self) -> None:
        if not self.id and not self.local_id:
            raise ValueError("Performer requires an external id or a local id")

    @property
    def key(self) -> str:
        """Dedup key: the external id when assigned, the local id otherwise."""

        return self.id or self.local_id  # type: ignore[return-value]


@dataclass(frozen=True, slots=True, kw_only=True)
class PendingAttributes:
    name: str
    legal_name: str | None = None
    instruments: tuple[str, ...] = ()
    nationality: str | None = None
    gender: str | None = None
    birth_date: str | None = None
    tenure: Tenure | None = None
    description: str | None = None
    is_member: bool = True
    organization_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class PendingEntity:
    """Organization or performer that does not exist in the graph yet."""

    local_id: str
    kind: PendingKind
    attributes: PendingAttributes
    status: PendingStatus = PendingStatus.PENDING
    entity_id: str | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def name(self) -> str:
        return self.attributes.name

    @property
    def organization_id(self) -> str | None:
        return self.attributes.organization_id


@dataclass(frozen=True, slots=True)
class Roster:
    """Reconciled performer list of one organization."""

    organization_id: str
    performers: tuple[Performer, ...] = ()

    def __iter__(self) -> Iterator[Performer]:
        return iter(self.performers)

    def __len__(self) -> int:
        return len(self.performers)

    def __contains__(self, key: object) -> bool:
        return any(performer.key == key for performer in self.performers)

    def get(self, key: str) -> Performer | None:
        for performer in self.performers:
            if performer.key == key:
                return performer
        return None

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(performer.id for performer in self.performers if performer.id)

    def resolved(self) -> tuple[Performer, ...]:
        return tuple(p for p in self.performers if p.provenance is Provenance.RESOLVED)

    def pending(self) -> tuple[Performer, ...]:
        return tuple(p for p in self.performers if p.provenance is Provenance.PENDING)
