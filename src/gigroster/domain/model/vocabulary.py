"""Wikidata property and item identifiers used by the engine."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class Prop(StrEnum):
    INSTANCE_OF = "P31"
    HAS_PART = "P527"
    MEMBER_OF = "P463"
    INSTRUMENT = "P1303"
    OCCUPATION = "P106"
    COUNTRY_OF_CITIZENSHIP = "P27"
    DATE_OF_BIRTH = "P569"
    IMAGE = "P18"
    START_TIME = "P580"
    END_TIME = "P582"
    SUBJECT_HAS_ROLE = "P2868"
    OBJECT_HAS_ROLE = "P3831"


class Item(StrEnum):
    HUMAN = "Q5"
    MUSICAL_GROUP = "Q215380"
    MUSICAL_ENSEMBLE = "Q2088357"
    ROCK_BAND = "Q5741069"


MUSICAL_GROUP_TYPES: Final[frozenset[str]] = frozenset(
    {Item.MUSICAL_GROUP, Item.MUSICAL_ENSEMBLE, Item.ROCK_BAND}
)
PERFORMER_TYPES: Final[frozenset[str]] = MUSICAL_GROUP_TYPES | {Item.HUMAN}

ROLE_QUALIFIERS: Final[tuple[str, ...]] = (Prop.OBJECT_HAS_ROLE, Prop.SUBJECT_HAS_ROLE)

WIKIDATA_ENTITY_URL: Final[str] = "https://www.wikidata.org/wiki/{id}"
WIKIPEDIA_ARTICLE_URL: Final[str] = "https://{language}.wikipedia.org/wiki/{title}"
COMMONS_FILE_PATH_URL: Final[str] = "https://commons.wikimedia.org/wiki/Special:FilePath/{name}"
