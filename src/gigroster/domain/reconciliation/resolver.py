"""Two-strategy roster resolution against the knowledge graph."""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from gigroster.domain.errors import GraphUnavailableError, NotFoundError, RosterError
from gigroster.domain.model import (
    MUSICAL_GROUP_TYPES,
    Item,
    Prop,
    ResolutionStrategy,
)
from gigroster.domain.ports import OptionalProjection, ReverseRelationshipQuery

from .projection import project_entity, project_rows
from .qualifiers import MembershipQualifiers, extract_membership

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gigroster.domain.model import GraphEntity, Performer
    from gigroster.domain.ports import GraphClient

log = getLogger(__name__)

ITEM_ID = re.compile(r"^Q[1-9]\d*$")
NAME_SEARCH_LIMIT = 5
MEMBER_VARIABLE = "member"

_REVERSE_PROJECTIONS = (
    OptionalProjection("instrument", Prop.INSTRUMENT, with_label=True),
    OptionalProjection("birthDate", Prop.DATE_OF_BIRTH),
    OptionalProjection("nationality", Prop.COUNTRY_OF_CITIZENSHIP, with_label=True),
    OptionalProjection("image", Prop.IMAGE),
)


def is_item_id(identifier: str) -> bool:
    return bool(ITEM_ID.fullmatch(identifier))


@dataclass(frozen=True, slots=True)
class RosterResolution:
    """Outcome of one resolution: performers, the strategy that produced them, soft failures."""

    organization_id: str
    performers: tuple[Performer, ...] = ()
    strategy: ResolutionStrategy = ResolutionStrategy.NONE
    failures: tuple[RosterError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True, slots=True)
class _Membership:
    member_id: str
    qualifiers: MembershipQualifiers


class RosterResolver:
    """Resolve the performer roster of an organization.

    Direct listing (``has part`` statements on the organization) is tried
    first; the reverse ``member of`` query only runs when it yields nothing.
    Failures are collected on the :class:`RosterResolution` instead of raised.
    """

    def __init__(self, graph: GraphClient, *, language: str = "en") -> None:
        self._graph = graph
        self._language = language

    async def resolve_roster(self, organization_id: str) -> list[Performer]:
        resolution = await self.resolve(organization_id)
        return list(resolution.performers)

    async def resolve(self, organization_id: str) -> RosterResolution:
        organization_id = organization_id.strip()
        if not is_item_id(organization_id):
            log.debug("Skipping resolution of non-graph identifier %s", organization_id)
            return RosterResolution(organization_id=organization_id)

        failures: list[RosterError] = []
        try:
            performers = await self._resolve_direct(organization_id, failures)
        except NotFoundError as exc:
            log.warning("Organization %s does not resolve", organization_id)
            return RosterResolution(organization_id=organization_id, failures=(exc,))
        except GraphUnavailableError as exc:
            log.warning("Direct listing for %s failed: %s", organization_id, exc)
            failures.append(exc)
            performers = []

        if performers:
            return RosterResolution(
                organization_id=organization_id,
                performers=tuple(performers),
                strategy=ResolutionStrategy.DIRECT_LISTING,
                failures=tuple(failures),
            )

        try:
            performers = await self._resolve_reverse(organization_id)
        except GraphUnavailableError as exc:
            log.warning("Reverse membership query for %s failed: %s", organization_id, exc)
            failures.append(exc)
            performers = []

        strategy = (
            ResolutionStrategy.REVERSE_RELATIONSHIP if performers else ResolutionStrategy.NONE
        )
        log.info(
            "Resolved %d performers for %s via %s", len(performers), organization_id, strategy
        )
        return RosterResolution(
            organization_id=organization_id,
            performers=tuple(performers),
            strategy=strategy,
            failures=tuple(failures),
        )

    async def resolve_by_name(self, name: str) -> RosterResolution:
        """Search for ``name`` and resolve the first hit classified as a musical group."""

        name = name.strip()
        try:
            organization_id = await self.find_organization(name)
        except GraphUnavailableError as exc:
            log.warning("Organization search for %r failed: %s", name, exc)
            return RosterResolution(organization_id=name, failures=(exc,))
        if organization_id is None:
            return RosterResolution(organization_id=name, failures=(NotFoundError(name),))
        return await self.resolve(organization_id)

    async def find_organization(self, name: str) -> str | None:
        hits = await self._graph.search_entities(
            name, limit=NAME_SEARCH_LIMIT, language=self._language
        )
        if not hits:
            return None
        entities = await self._graph.lookup_entities(
            [hit.id for hit in hits], languages=(self._language,), props=("claims",)
        )
        for hit in hits:
            entity = entities.get(hit.id)
            if entity is not None and entity.is_instance_of(MUSICAL_GROUP_TYPES):
                return hit.id
        return None

    async def _resolve_direct(
        self, organization_id: str, failures: list[RosterError]
    ) -> list[Performer]:
        organizations = await self._graph.lookup_entities(
            [organization_id], languages=(self._language,), props=("claims",)
        )
        organization = organizations.get(organization_id)
        if organization is None:
            raise NotFoundError(organization_id)

        memberships = _memberships(organization)
        if not memberships:
            return []

        members = await self._graph.lookup_entities(
            [membership.member_id for membership in memberships],
            languages=(self._language,),
        )
        try:
            labels = await self._labels_for(memberships, members)
        except GraphUnavailableError as exc:
            log.warning("Label lookup for %s failed, keeping raw ids: %s", organization_id, exc)
            failures.append(exc)
            labels = {}

        performers: list[Performer] = []
        seen: set[str] = set()
        for membership in memberships:
            member = members.get(membership.member_id)
            if member is None or member.id in seen:
                continue
            seen.add(member.id)
            performers.append(
                project_entity(
                    member,
                    labels=labels,
                    roles=membership.qualifiers.roles,
                    tenure=membership.qualifiers.tenure,
                    organization_id=organization_id,
                    language=self._language,
                )
            )
        return performers

    async def _labels_for(
        self,
        memberships: Sequence[_Membership],
        members: dict[str, GraphEntity],
    ) -> dict[str, str]:
        referenced: dict[str, None] = {}
        for membership in memberships:
            referenced.update(dict.fromkeys(membership.qualifiers.roles))
        for member in members.values():
            referenced.update(dict.fromkeys(member.claim_values(Prop.INSTRUMENT)))
            referenced.update(dict.fromkeys(member.claim_values(Prop.COUNTRY_OF_CITIZENSHIP)))
        ids = [identifier for identifier in referenced if is_item_id(identifier)]
        if not ids:
            return {}
        entities = await self._graph.lookup_entities(
            ids, languages=(self._language,), props=("labels",)
        )
        return {
            entity_id: label
            for entity_id, entity in entities.items()
            if (label := entity.label(self._language))
        }

    async def _resolve_reverse(self, organization_id: str) -> list[Performer]:
        query = ReverseRelationshipQuery(
            predicate=Prop.MEMBER_OF,
            object_id=organization_id,
            subject_variable=MEMBER_VARIABLE,
            subject_type=Item.HUMAN,
            projections=_REVERSE_PROJECTIONS,
            sitelink_language=self._language,
            language=self._language,
        )
        rows = await self._graph.query_reverse_relationship(query)
        return project_rows(rows, subject_variable=MEMBER_VARIABLE, organization_id=organization_id)


def _memberships(organization: GraphEntity) -> list[_Membership]:
    memberships: list[_Membership] = []
    for statement in organization.statements(Prop.HAS_PART):
        if statement.value is None or statement.rank == "deprecated":
            continue
        memberships.append(_Membership(statement.value, extract_membership(statement)))
    return memberships
