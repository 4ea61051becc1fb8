"""Public domain model surface."""

from __future__ import annotations

from gigroster.domain.model.enums import (
    CacheState,
    PendingKind,
    PendingStatus,
    Provenance,
    ResolutionStrategy,
    SearchStatus,
)
from gigroster.domain.model.graph import GraphEntity, SearchHit, Snak, Statement
from gigroster.domain.model.performer import (
    PendingAttributes,
    PendingEntity,
    Performer,
    Roster,
    Tenure,
)
from gigroster.domain.model.vocabulary import (
    MUSICAL_GROUP_TYPES,
    PERFORMER_TYPES,
    ROLE_QUALIFIERS,
    Item,
    Prop,
)

__all__ = [  # noqa: RUF022
    # enums
    "CacheState",
    "PendingKind",
    "PendingStatus",
    "Provenance",
    "ResolutionStrategy",
    "SearchStatus",
    # graph
    "GraphEntity",
    "SearchHit",
    "Snak",
    "Statement",
    # roster
    "PendingAttributes",
    "PendingEntity",
    "Performer",
    "Roster",
    "Tenure",
    # vocabulary
    "Item",
    "MUSICAL_GROUP_TYPES",
    "PERFORMER_TYPES",
    "Prop",
    "ROLE_QUALIFIERS",
]
