"""Wikidata Action API and SPARQL response schemas."""

from __future__ import annotations

import logging
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type EntityId = str  # Q42, P31, L1...
type LanguageCode = str
type SiteId = str  # enwiki, dewiki, commonswiki...


class WikidataBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "Wikidata %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


# ---------------------------------------------------------------------------
# wbgetentities
# ---------------------------------------------------------------------------


class WikidataLanguageValue(WikidataBaseModel):
    language: LanguageCode
    value: str
    for_language: LanguageCode | None = Field(default=None, alias="for-language")


class WikidataSitelink(WikidataBaseModel):
    site: SiteId
    title: str
    badges: list[str] = Field(default_factory=list)
    url: str | None = None


class WikidataDataValue(WikidataBaseModel):
    """Typed value of a snak.

    ``value`` is a plain string for string-like datatypes and an object for
    ``wikibase-entityid``, ``time``, ``quantity``, ``monolingualtext`` and
    ``globecoordinate``.
    """

    type: str
    value: str | dict[str, object]


class WikidataSnak(WikidataBaseModel):
    snaktype: Literal["value", "novalue", "somevalue"] = "value"
    property_id: EntityId = Field(alias="property")
    hash: str | None = None
    datavalue: WikidataDataValue | None = None
    datatype: str | None = None


class WikidataReference(WikidataBaseModel):
    hash: str | None = None
    snaks: dict[EntityId, list[WikidataSnak]] = Field(
        default_factory=dict["EntityId", "list[WikidataSnak]"]
    )
    snaks_order: list[EntityId] = Field(default_factory=list, alias="snaks-order")


class WikidataStatement(WikidataBaseModel):
    mainsnak: WikidataSnak
    type: str = "statement"
    id: str | None = None
    rank: Literal["preferred", "normal", "deprecated"] = "normal"
    qualifiers: dict[EntityId, list[WikidataSnak]] = Field(
        default_factory=dict["EntityId", "list[WikidataSnak]"]
    )
    qualifiers_order: list[EntityId] = Field(default_factory=list, alias="qualifiers-order")
    references: list[WikidataReference] = Field(default_factory=list["WikidataReference"])


class WikidataEntity(WikidataBaseModel):
    id: EntityId
    type: str | None = None
    missing: str | None = None
    pageid: int | None = None
    ns: int | None = None
    title: str | None = None
    lastrevid: int | None = None
    modified: str | None = None
    labels: dict[LanguageCode, WikidataLanguageValue] = Field(
        default_factory=dict["LanguageCode", "WikidataLanguageValue"]
    )
    descriptions: dict[LanguageCode, WikidataLanguageValue] = Field(
        default_factory=dict["LanguageCode", "WikidataLanguageValue"]
    )
    aliases: dict[LanguageCode, list[WikidataLanguageValue]] = Field(
        default_factory=dict["LanguageCode", "list[WikidataLanguageValue]"]
    )
    claims: dict[EntityId, list[WikidataStatement]] = Field(
        default_factory=dict["EntityId", "list[WikidataStatement]"]
    )
    sitelinks: dict[SiteId, WikidataSitelink] = Field(
        default_factory=dict["SiteId", "WikidataSitelink"]
    )

    @property
    def is_missing(self) -> bool:
        return self.missing is not None


class WikidataApiError(WikidataBaseModel):
    code: str
    info: str | None = None
    docref: str | None = Field(default=None, alias="*")


class WikidataEntitiesResponse(WikidataBaseModel):
    entities: dict[EntityId, WikidataEntity] = Field(
        default_factory=dict["EntityId", "WikidataEntity"]
    )
    success: int | None = None
    error: WikidataApiError | None = None
    servedby: str | None = None


# ---------------------------------------------------------------------------
# wbsearchentities
# ---------------------------------------------------------------------------


class WikidataSearchMatch(WikidataBaseModel):
    type: str
    language: LanguageCode | None = None
    text: str | None = None


class WikidataSearchResult(WikidataBaseModel):
    id: EntityId
    title: str | None = None
    pageid: int | None = None
    repository: str | None = None
    url: str | None = None
    concepturi: str | None = None
    label: str | None = None
    description: str | None = None
    match: WikidataSearchMatch | None = None
    aliases: list[str] = Field(default_factory=list)
    display: dict[str, object] | None = None


class WikidataSearchResponse(WikidataBaseModel):
    searchinfo: dict[str, object] | None = None
    search: list[WikidataSearchResult] = Field(default_factory=list["WikidataSearchResult"])
    search_continue: int | None = Field(default=None, alias="search-continue")
    success: int | None = None
    error: WikidataApiError | None = None
    servedby: str | None = None


# ---------------------------------------------------------------------------
# SPARQL 1.1 Query Results JSON
# ---------------------------------------------------------------------------


class SparqlValue(WikidataBaseModel):
    type: Literal["uri", "literal", "bnode", "typed-literal"]
    value: str
    xml_lang: LanguageCode | None = Field(default=None, alias="xml:lang")
    datatype: str | None = None


class SparqlHead(WikidataBaseModel):
    vars: list[str] = Field(default_factory=list)
    link: list[str] | None = None


class SparqlResults(WikidataBaseModel):
    bindings: list[dict[str, SparqlValue]] = Field(
        default_factory=list["dict[str, SparqlValue]"]
    )


class SparqlResponse(WikidataBaseModel):
    head: SparqlHead
    results: SparqlResults
