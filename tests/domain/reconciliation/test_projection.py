from __future__ import annotations

from gigroster.domain.model import (
    PendingAttributes,
    PendingEntity,
    PendingKind,
    Prop,
    Provenance,
    Tenure,
)
from gigroster.domain.reconciliation import (
    derive_description,
    project_entity,
    project_pending,
    project_rows,
)
from gigroster.domain.reconciliation.projection import commons_image_url, demonym_for
from tests.helpers.graph import make_entity


def test_project_entity_uses_labels_for_referenced_items() -> None:
    entity = make_entity(
        "Q1001",
        "Kari Nordmann",
        claims={
            Prop.INSTRUMENT: ["Q6607", "Q46185"],
            Prop.COUNTRY_OF_CITIZENSHIP: ["Q20"],
            Prop.IMAGE: ["Kari Nordmann 2019.jpg"],
        },
        sitelinks={"enwiki": "Kari Nordmann"},
    )

    performer = project_entity(
        entity,
        labels={"Q6607": "guitar", "Q20": "Norway", "Q17172850": "vocals"},
        roles=["Q17172850"],
        tenure=Tenure(start=2010),
        organization_id="Q999",
    )

    assert performer.id == "Q1001"
    assert performer.provenance is Provenance.RESOLVED
    assert performer.instruments == ("vocals", "guitar", "Q46185")
    assert performer.nationality == "Norway"
    assert performer.description == "Norwegian singer"
    assert performer.tenure == Tenure(start=2010)
    assert performer.organization_id == "Q999"
    assert performer.wikidata_url == "https://www.wikidata.org/wiki/Q1001"
    assert performer.wikipedia_url == "https://en.wikipedia.org/wiki/Kari_Nordmann"
    assert performer.image_url == (
        "https://commons.wikimedia.org/wiki/Special:FilePath/Kari_Nordmann_2019.jpg"
    )


def test_project_entity_prefers_graph_description_and_falls_back_to_id() -> None:
    entity = make_entity("Q5", description="rock drummer")

    performer = project_entity(entity, labels={})

    assert performer.name == "Q5"
    assert performer.description == "rock drummer"


def test_project_rows_groups_by_member_in_first_seen_order() -> None:
    rows = [
        {"member": "Q2", "memberLabel": "Anna", "instrumentLabel": "vocals"},
        {"member": "Q3", "memberLabel": "Bo"},
        {"member": "Q2", "memberLabel": "Anna", "instrumentLabel": "guitar"},
        {"member": "Q2", "memberLabel": "Anna", "instrumentLabel": "vocals"},
    ]

    performers = project_rows(rows, organization_id="Q888")

    assert [performer.id for performer in performers] == ["Q2", "Q3"]
    assert performers[0].instruments == ("vocals", "guitar")
    assert performers[1].instruments == ()
    assert all(performer.organization_id == "Q888" for performer in performers)


def test_project_rows_reads_optional_columns() -> None:
    rows = [
        {
            "member": "Q2",
            "memberLabel": "Anna",
            "birthDate": "1990-07-01T00:00:00Z",
            "nationality": "Q34",
            "nationalityLabel": "Sweden",
            "image": "http://commons.wikimedia.org/wiki/Special:FilePath/Anna.jpg",
            "wikipedia": "https://en.wikipedia.org/wiki/Anna",
        }
    ]

    (performer,) = project_rows(rows)

    assert performer.birth_year == 1990
    assert performer.nationality == "Sweden"
    assert performer.description == "Swedish musician"
    assert performer.image_url == "https://commons.wikimedia.org/wiki/Special:FilePath/Anna.jpg"
    assert performer.wikipedia_url == "https://en.wikipedia.org/wiki/Anna"


def test_project_pending_derives_description() -> None:
    pending = PendingEntity(
        local_id="pending-performer-1",
        kind=PendingKind.PERFORMER,
        attributes=PendingAttributes(
            name="  Jane Doe ",
            instruments=("bass guitar", "bass guitar"),
            nationality="Q183",
            birth_date="1979-02-03",
            organization_id="Q999",
        ),
    )

    performer = project_pending(pending)

    assert performer.key == "pending-performer-1"
    assert performer.id is None
    assert performer.name == "Jane Doe"
    assert performer.provenance is Provenance.PENDING
    assert performer.instruments == ("bass guitar",)
    assert performer.description == "German bassist"
    assert performer.birth_year == 1979


def test_derive_description() -> None:
    assert derive_description("Q183", ["guitar"]) == "German guitarist"
    assert derive_description("Germany", ["Drums"]) == "German drummer"
    assert derive_description(None, ["vocals"]) == "singer"
    assert derive_description("Q20", []) == "Norwegian musician"
    assert derive_description("Q20", ["theremin"]) == "Norwegian musician"
    assert derive_description(None, [], occupations=["Q855091"]) == "guitarist"
    assert derive_description(None, []) is None


def test_demonym_and_image_helpers() -> None:
    assert demonym_for("Q884") == "South Korean"
    assert demonym_for("Icelandic") == "Icelandic"
    assert demonym_for(None) is None
    assert commons_image_url(None) is None
    assert commons_image_url("https://example.org/a.jpg") == "https://example.org/a.jpg"
