"""Domain ports implemented by adapters."""

from __future__ import annotations

from .graph import (
    DEFAULT_ENTITY_PROPS,
    GraphClient,
    OptionalProjection,
    QueryRow,
    ReverseRelationshipQuery,
)
from .persistence import JsonValue, SnapshotStore

__all__ = [
    "DEFAULT_ENTITY_PROPS",
    "GraphClient",
    "JsonValue",
    "OptionalProjection",
    "QueryRow",
    "ReverseRelationshipQuery",
    "SnapshotStore",
]
