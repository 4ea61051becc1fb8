"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Provenance(StrEnum):
    RESOLVED = "resolved"
    PENDING = "pending"


class PendingKind(StrEnum):
    ORGANIZATION = "organization"
    PERFORMER = "performer"


class PendingStatus(StrEnum):
    PENDING = "pending"
    CREATING = "creating"
    CREATED = "created"
    FAILED = "failed"


class CacheState(StrEnum):
    EMPTY = "empty"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class ResolutionStrategy(StrEnum):
    DIRECT_LISTING = "direct-listing"
    REVERSE_RELATIONSHIP = "reverse-relationship"
    NONE = "none"


class SearchStatus(StrEnum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"
    SKIPPED = "skipped"
    STALE = "stale"
