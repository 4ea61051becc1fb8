"""Translate Wikidata payloads into graph domain objects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gigroster.domain.model import GraphEntity, SearchHit, Snak, Statement

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gigroster.domain.ports import QueryRow

    from .schema import (
        SparqlResponse,
        WikidataDataValue,
        WikidataEntitiesResponse,
        WikidataEntity,
        WikidataReference,
        WikidataSearchResult,
        WikidataSnak,
        WikidataStatement,
    )

ENTITY_URI_PREFIXES = (
    "http://www.wikidata.org/entity/",
    "https://www.wikidata.org/entity/",
)


def translate_entities(response: WikidataEntitiesResponse) -> dict[str, GraphEntity]:
    """Translate a ``wbgetentities`` response, omitting missing entities.

    Requested ids that redirect to the same entity collapse into one entry keyed
    by the target id.
    """

    entities: dict[str, GraphEntity] = {}
    collect_entities(
        entities,
        (
            translate_entity(payload)
            for payload in response.entities.values()
            if not payload.is_missing
        ),
    )
    return entities


def collect_entities(target: dict[str, GraphEntity], entities: Iterable[GraphEntity]) -> None:
    for entity in entities:
        known = target.get(entity.id)
        if known is None:
            target[entity.id] = entity
        else:
            known.enrich(entity)


def translate_entity(payload: WikidataEntity) -> GraphEntity:
    return GraphEntity(
        id=payload.id,
        labels={language: value.value for language, value in payload.labels.items()},
        descriptions={
            language: value.value for language, value in payload.descriptions.items()
        },
        claims={
            property_id: [_translate_statement(statement) for statement in statements]
            for property_id, statements in payload.claims.items()
        },
        sitelinks={site: sitelink.title for site, sitelink in payload.sitelinks.items()},
    )


def translate_search_hit(result: WikidataSearchResult) -> SearchHit:
    return SearchHit(id=result.id, label=result.label, description=result.description)


def translate_bindings(response: SparqlResponse) -> list[QueryRow]:
    """Flatten SPARQL bindings into ``variable -> value`` rows.

    Entity URIs are shortened to their bare identifier; other URIs (images,
    sitelinks) are kept verbatim.
    """

    rows: list[QueryRow] = []
    for binding in response.results.bindings:
        row: QueryRow = {}
        for variable, value in binding.items():
            row[variable] = (
                entity_id_from_uri(value.value) if value.type == "uri" else value.value
            )
        rows.append(row)
    return rows


def entity_id_from_uri(uri: str) -> str:
    for prefix in ENTITY_URI_PREFIXES:
        if uri.startswith(prefix):
            return uri.removeprefix(prefix)
    return uri


def _translate_statement(payload: WikidataStatement) -> Statement:
    qualifier_order = payload.qualifiers_order or list(payload.qualifiers)
    qualifiers = {
        property_id: tuple(_translate_snak(snak) for snak in payload.qualifiers[property_id])
        for property_id in qualifier_order
        if property_id in payload.qualifiers
    }
    return Statement(
        mainsnak=_translate_snak(payload.mainsnak),
        qualifiers=qualifiers,
        references=tuple(_translate_reference(reference) for reference in payload.references),
        rank=payload.rank,
        id=payload.id,
    )


def _translate_reference(payload: WikidataReference) -> dict[str, tuple[Snak, ...]]:
    return {
        property_id: tuple(_translate_snak(snak) for snak in snaks)
        for property_id, snaks in payload.snaks.items()
    }


def _translate_snak(payload: WikidataSnak) -> Snak:
    if payload.snaktype != "value" or payload.datavalue is None:
        return Snak(property_id=payload.property_id, value=None, datatype=payload.datatype)
    return Snak(
        property_id=payload.property_id,
        value=_normalize_datavalue(payload.datavalue),
        datatype=payload.datatype,
    )


def _normalize_datavalue(datavalue: WikidataDataValue) -> str | None:  # noqa: PLR0911
    value = datavalue.value
    if isinstance(value, str):
        return value
    match datavalue.type:
        case "wikibase-entityid":
            entity_id = value.get("id")
            if isinstance(entity_id, str):
                return entity_id
            numeric_id = value.get("numeric-id")
            return f"Q{numeric_id}" if numeric_id is not None else None
        case "time":
            return _as_text(value.get("time"))
        case "monolingualtext":
            return _as_text(value.get("text"))
        case "quantity":
            return _as_text(value.get("amount"))
        case "globecoordinate":
            latitude, longitude = value.get("latitude"), value.get("longitude")
            if latitude is None or longitude is None:
                return None
            return f"{latitude},{longitude}"
        case _:
            return None


def _as_text(value: object) -> str | None:
    return None if value is None else str(value)
