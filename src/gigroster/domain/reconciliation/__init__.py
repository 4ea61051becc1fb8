"""Roster reconciliation between the knowledge graph and local state.

Flow:
1) the resolver builds a roster from the graph (direct listing, then reverse query)
2) the cache holds the active organization's snapshot and persists it
3) search results and pending entities are merged into the same snapshot
4) promotion swaps a pending entry for the graph entity it became
"""

from __future__ import annotations

from .cache import OrganizationSnapshot, ReconciliationCache
from .merge import merge_performers
from .pending import LocalIdGenerator, PendingEntityManager
from .projection import derive_description, project_entity, project_pending, project_rows
from .qualifiers import MembershipQualifiers, extract_membership, year_from_timestamp
from .resolver import RosterResolution, RosterResolver
from .search import DebouncedSearch, PerformerSearch, SearchOutcome

__all__ = [
    "DebouncedSearch",
    "LocalIdGenerator",
    "MembershipQualifiers",
    "OrganizationSnapshot",
    "PendingEntityManager",
    "PerformerSearch",
    "ReconciliationCache",
    "RosterResolution",
    "RosterResolver",
    "SearchOutcome",
    "derive_description",
    "extract_membership",
    "merge_performers",
    "project_entity",
    "project_pending",
    "project_rows",
    "year_from_timestamp",
]
