"""Port definitions for knowledge-graph access."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from gigroster.domain.model import GraphEntity, SearchHit

type QueryRow = dict[str, str]

DEFAULT_ENTITY_PROPS: tuple[str, ...] = ("labels", "descriptions", "claims", "sitelinks")


@dataclass(frozen=True, slots=True)
class OptionalProjection:
    """``OPTIONAL { ?subject wdt:<predicate> ?<variable> }``, optionally labelled."""

    variable: str
    predicate: str
    with_label: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class ReverseRelationshipQuery:
    """Subjects whose ``predicate`` points at ``object_id``.

    Rows carry the subject id under ``subject_variable``, its label under
    ``<subject_variable>Label``, every projection variable (plus ``<variable>Label``
    for labelled projections) and ``wikipedia`` when ``sitelink_language`` is set.
    """

    predicate: str
    object_id: str
    subject_variable: str = "member"
    subject_type: str | None = None
    projections: tuple[OptionalProjection, ...] = ()
    sitelink_language: str | None = None
    language: str = "en"
    limit: int | None = None


@runtime_checkable
class GraphClient(Protocol):
    """Read-only access to the external knowledge graph.

    Every failure surfaces as ``GraphUnavailableError``; absent entities are simply
    missing from lookup results.
    """

    async def lookup_entities(
        self,
        ids: Collection[str],
        *,
        languages: tuple[str, ...] | None = None,
        props: tuple[str, ...] = DEFAULT_ENTITY_PROPS,
    ) -> dict[str, GraphEntity]: ...

    async def search_entities(
        self,
        query: str,
        *,
        limit: int = 10,
        language: str | None = None,
        type_filter: str = "item",
    ) -> list[SearchHit]: ...

    async def query_reverse_relationship(
        self, query: ReverseRelationshipQuery
    ) -> list[QueryRow]: ...
