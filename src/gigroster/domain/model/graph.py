"""Strongly typed view of knowledge-graph entities and their statements."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gigroster.domain.model.vocabulary import Prop

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class Snak:
    """One property/value pair.

    ``value`` is normalized to a string: the target id for item values, the full
    timestamp for time values, the text for string-like values. ``None`` stands for
    ``novalue``/``somevalue`` snaks.
    """

    property_id: str
    value: str | None
    datatype: str | None = None


@dataclass(frozen=True, slots=True)
class Statement:
    mainsnak: Snak
    qualifiers: dict[str, tuple[Snak, ...]] = field(default_factory=dict["str", "tuple[Snak, ...]"])
    references: tuple[dict[str, tuple[Snak, ...]], ...] = ()
    rank: str = "normal"
    id: str | None = None

    @property
    def value(self) -> str | None:
        return self.mainsnak.value

    def qualifier_values(self, property_id: str) -> list[str]:
        return [snak.value for snak in self.qualifiers.get(property_id, ()) if snak.value]


@dataclass(frozen=True, slots=True)
class SearchHit:
    id: str
    label: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class GraphEntity:
    """Entity as retrieved from the graph.

    The identifier is fixed for the lifetime of the object; the mappings may be
    enriched in place via :meth:`enrich`.
    """

    id: str
    labels: dict[str, str] = field(default_factory=dict["str", "str"])
    descriptions: dict[str, str] = field(default_factory=dict["str", "str"])
    claims: dict[str, list[Statement]] = field(default_factory=dict["str", "list[Statement]"])
    sitelinks: dict[str, str] = field(default_factory=dict["str", "str"])

    def label(self, language: str = "en") -> str | None:
        return self.labels.get(language)

    def description(self, language: str = "en") -> str | None:
        return self.descriptions.get(language)

    def statements(self, property_id: str) -> list[Statement]:
        return self.claims.get(property_id, [])

    def claim_values(self, property_id: str) -> list[str]:
        return [
            statement.value for statement in self.statements(property_id) if statement.value
        ]

    def first_value(self, property_id: str) -> str | None:
        values = self.claim_values(property_id)
        return values[0] if values else None

    def instance_of(self) -> set[str]:
        return set(self.claim_values(Prop.INSTANCE_OF))

    def is_instance_of(self, types: Iterable[str]) -> bool:
        return bool(self.instance_of().intersection(types))

    def sitelink(self, site: str) -> str | None:
        return self.sitelinks.get(site)

    def enrich(self, other: GraphEntity) -> None:
        """Fold attributes of another snapshot of the same entity into this one."""

        if other.id != self.id:
            raise ValueError(f"Cannot enrich entity {self.id} with data of {other.id}")
        self.labels.update(other.labels)
        self.descriptions.update(other.descriptions)
        for property_id, statements in other.claims.items():
            known = self.claims.setdefault(property_id, [])
            for statement in statements:
                if statement not in known:
                    known.append(statement)
        self.sitelinks.update(other.sitelinks)
