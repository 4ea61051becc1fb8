"""Project graph entities, query rows and pending entities into performers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final
from urllib.parse import quote

from gigroster.domain.model import Performer, Prop, Provenance
from gigroster.domain.model.vocabulary import (
    COMMONS_FILE_PATH_URL,
    WIKIDATA_ENTITY_URL,
    WIKIPEDIA_ARTICLE_URL,
)

from .qualifiers import year_from_timestamp

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from gigroster.domain.model import GraphEntity, PendingEntity, Tenure
    from gigroster.domain.ports import QueryRow

# country id -> (country label, demonym)
NATIONALITIES: Final[dict[str, tuple[str, str]]] = {
    "Q20": ("Norway", "Norwegian"),
    "Q30": ("United States", "American"),
    "Q145": ("United Kingdom", "British"),
    "Q183": ("Germany", "German"),
    "Q142": ("France", "French"),
    "Q38": ("Italy", "Italian"),
    "Q29": ("Spain", "Spanish"),
    "Q96": ("Mexico", "Mexican"),
    "Q16": ("Canada", "Canadian"),
    "Q408": ("Australia", "Australian"),
    "Q31": ("Belgium", "Belgian"),
    "Q55": ("Netherlands", "Dutch"),
    "Q34": ("Sweden", "Swedish"),
    "Q35": ("Denmark", "Danish"),
    "Q33": ("Finland", "Finnish"),
    "Q39": ("Switzerland", "Swiss"),
    "Q40": ("Austria", "Austrian"),
    "Q155": ("Brazil", "Brazilian"),
    "Q159": ("Russia", "Russian"),
    "Q17": ("Japan", "Japanese"),
    "Q148": ("China", "Chinese"),
    "Q884": ("South Korea", "South Korean"),
    "Q668": ("India", "Indian"),
}

_DEMONYM_BY_COUNTRY: Final[dict[str, str]] = {
    country.casefold(): demonym for country, demonym in NATIONALITIES.values()
}

PERFORMER_NOUNS: Final[dict[str, str]] = {
    "guitar": "guitarist",
    "electric guitar": "guitarist",
    "acoustic guitar": "guitarist",
    "bass guitar": "bassist",
    "bass": "bassist",
    "double bass": "bassist",
    "drums": "drummer",
    "drum kit": "drummer",
    "percussion instrument": "percussionist",
    "vocals": "singer",
    "voice": "singer",
    "singing": "singer",
    "piano": "pianist",
    "keyboard": "keyboardist",
    "keyboard instrument": "keyboardist",
    "violin": "violinist",
    "saxophone": "saxophonist",
    "trumpet": "trumpeter",
    "flute": "flautist",
    "cello": "cellist",
    "accordion": "accordionist",
    "clarinet": "clarinetist",
    "trombone": "trombonist",
    "tuba": "tubist",
    "viola": "violist",
}

OCCUPATION_NOUNS: Final[dict[str, str]] = {
    "Q177220": "singer",
    "Q855091": "guitarist",
    "Q765778": "bassist",
    "Q386854": "drummer",
    "Q2252262": "keyboardist",
    "Q36834": "composer",
    "Q639669": "musician",
    "Q10800557": "singer-songwriter",
    "Q488205": "singer-songwriter",
    "Q2643890": "music producer",
    "Q222722": "conductor",
    "Q1414443": "vocalist",
}


def project_entity(
    entity: GraphEntity,
    *,
    labels: Mapping[str, str],
    roles: Sequence[str] = (),
    tenure: Tenure | None = None,
    organization_id: str | None = None,
    language: str = "en",
) -> Performer:
    """Project a fetched entity; ``labels`` maps referenced item ids to display labels.

    Instruments are the membership role labels followed by the entity's own
    instrument labels. Ids without a known label are kept as-is.
    """

    instruments = dedupe(
        [labels.get(role, role) for role in roles]
        + [labels.get(item, item) for item in entity.claim_values(Prop.INSTRUMENT)]
    )
    nationality_id = entity.first_value(Prop.COUNTRY_OF_CITIZENSHIP)
    nationality = labels.get(nationality_id, nationality_id) if nationality_id else None
    description = entity.description(language) or derive_description(
        nationality_id or nationality,
        instruments,
        occupations=entity.claim_values(Prop.OCCUPATION),
    )
    return Performer(
        id=entity.id,
        name=entity_name(entity, language),
        provenance=Provenance.RESOLVED,
        wikidata_url=WIKIDATA_ENTITY_URL.format(id=entity.id),
        wikipedia_url=_wikipedia_url(entity.sitelink(f"{language}wiki"), language),
        instruments=instruments,
        tenure=tenure,
        nationality=nationality,
        birth_year=year_from_timestamp(entity.first_value(Prop.DATE_OF_BIRTH)),
        image_url=commons_image_url(entity.first_value(Prop.IMAGE)),
        description=description,
        organization_id=organization_id,
    )


def project_rows(
    rows: Iterable[QueryRow],
    *,
    subject_variable: str = "member",
    organization_id: str | None = None,
) -> list[Performer]:
    """Group reverse-query rows by subject, in first-seen order.

    One row is emitted per (subject, optional value) combination, so instrument
    labels accumulate across rows without duplicates; scalar columns keep the
    first non-empty value.
    """

    grouped: dict[str, list[QueryRow]] = {}
    for row in rows:
        subject = row.get(subject_variable)
        if not subject:
            continue
        grouped.setdefault(subject, []).append(row)

    performers: list[Performer] = []
    for subject, subject_rows in grouped.items():
        instruments = dedupe(row.get("instrumentLabel") for row in subject_rows)
        nationality = _first(subject_rows, "nationalityLabel")
        nationality_id = _first(subject_rows, "nationality")
        performers.append(
            Performer(
                id=subject,
                name=_first(subject_rows, f"{subject_variable}Label") or subject,
                provenance=Provenance.RESOLVED,
                wikidata_url=WIKIDATA_ENTITY_URL.format(id=subject),
                wikipedia_url=_first(subject_rows, "wikipedia"),
                instruments=instruments,
                nationality=nationality,
                birth_year=year_from_timestamp(_first(subject_rows, "birthDate")),
                image_url=commons_image_url(_first(subject_rows, "image")),
                description=derive_description(nationality_id or nationality, instruments),
                organization_id=organization_id,
            )
        )
    return performers


def project_pending(pending: PendingEntity) -> Performer:
    attributes = pending.attributes
    return Performer(
        id=pending.entity_id,
        local_id=pending.local_id,
        name=attributes.name.strip(),
        provenance=Provenance.PENDING,
        instruments=dedupe(attributes.instruments),
        tenure=attributes.tenure,
        nationality=attributes.nationality,
        birth_year=year_from_timestamp(attributes.birth_date),
        description=attributes.description
        or derive_description(attributes.nationality, attributes.instruments),
        organization_id=attributes.organization_id,
    )


def derive_description(
    nationality: str | None,
    instruments: Sequence[str],
    *,
    occupations: Sequence[str] = (),
) -> str | None:
    """``("Q183", ["guitar"])`` -> ``"German guitarist"``."""

    noun = _performer_noun(instruments, occupations)
    demonym = demonym_for(nationality)
    if noun is None:
        return f"{demonym} musician" if demonym else None
    return f"{demonym} {noun}" if demonym else noun


def demonym_for(nationality: str | None) -> str | None:
    """Accepts a country id, a country label or an already adjectival form."""

    if not nationality:
        return None
    if nationality in NATIONALITIES:
        return NATIONALITIES[nationality][1]
    return _DEMONYM_BY_COUNTRY.get(nationality.casefold(), nationality)


def commons_image_url(value: str | None) -> str | None:
    """Full URLs (as returned by SPARQL) are kept; bare file names become FilePath URLs."""

    if not value:
        return None
    if value.startswith("http://"):
        return "https://" + value.removeprefix("http://")
    if value.startswith("https://"):
        return value
    return COMMONS_FILE_PATH_URL.format(name=quote(value.replace(" ", "_")))


def entity_name(entity: GraphEntity, language: str = "en") -> str:
    label = entity.label(language)
    if label:
        return label
    return next(iter(entity.labels.values()), entity.id)


def dedupe(values: Iterable[str | None]) -> tuple[str, ...]:
    """Drop empty values and duplicates, preserving first-seen order."""

    return tuple(dict.fromkeys(value for value in values if value))


def _performer_noun(instruments: Sequence[str], occupations: Sequence[str]) -> str | None:
    for instrument in instruments:
        noun = PERFORMER_NOUNS.get(instrument.casefold())
        if noun:
            return noun
    for occupation in occupations:
        noun = OCCUPATION_NOUNS.get(occupation)
        if noun:
            return noun
    return "musician" if instruments or occupations else None


def _wikipedia_url(title: str | None, language: str) -> str | None:
    if not title:
        return None
    return WIKIPEDIA_ARTICLE_URL.format(language=language, title=quote(title.replace(" ", "_")))


def _first(rows: Sequence[QueryRow], key: str) -> str | None:
    for row in rows:
        value = row.get(key)
        if value:
            return value
    return None
