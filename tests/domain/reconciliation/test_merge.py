from __future__ import annotations

from gigroster.domain.model import Performer, Provenance, Tenure
from gigroster.domain.reconciliation import merge_performers


def _performer(key: str, name: str = "Someone", **values: object) -> Performer:
    if key.startswith("Q"):
        return Performer(id=key, name=name, **values)  # type: ignore[arg-type]
    return Performer(
        local_id=key, name=name, provenance=Provenance.PENDING, **values  # type: ignore[arg-type]
    )


def test_merge_keeps_first_appearance_order() -> None:
    existing = [_performer("Q1"), _performer("Q2")]
    incoming = [_performer("Q3"), _performer("Q1"), _performer("pending-performer-1")]

    merged = merge_performers(existing, incoming)

    assert [performer.key for performer in merged] == ["Q1", "Q2", "Q3", "pending-performer-1"]


def test_merge_unions_instruments_and_prefers_incoming_scalars() -> None:
    existing = [
        _performer("Q1", "Old Name", instruments=("guitar",), nationality="Norway", birth_year=1980)
    ]
    incoming = [_performer("Q1", "New Name", instruments=("vocals", "guitar"), nationality="")]

    (merged,) = merge_performers(existing, incoming)

    assert merged.name == "New Name"
    assert merged.instruments == ("guitar", "vocals")
    assert merged.nationality == "Norway"
    assert merged.birth_year == 1980


def test_empty_tenure_does_not_override() -> None:
    existing = [_performer("Q1", tenure=Tenure(start=2001))]
    incoming = [_performer("Q1", tenure=Tenure())]

    (merged,) = merge_performers(existing, incoming)

    assert merged.tenure == Tenure(start=2001)


def test_duplicates_within_a_list_collapse() -> None:
    merged = merge_performers(
        [],
        [_performer("Q1", instruments=("drums",)), _performer("Q1", instruments=("piano",))],
    )

    assert len(merged) == 1
    assert merged[0].instruments == ("drums", "piano")


def test_merge_is_idempotent() -> None:
    a = [_performer("Q1", instruments=("guitar",)), _performer("pending-performer-1")]
    b = [
        _performer("Q1", "Renamed", instruments=("bass guitar",)),
        _performer("Q2", description="drummer"),
        _performer("Q2", instruments=("drums",)),
    ]

    once = merge_performers(a, b)

    assert merge_performers(once, b) == once


def test_key_set_is_order_independent() -> None:
    a = [_performer("Q1"), _performer("pending-performer-1")]
    b = [_performer("Q2"), _performer("Q1")]

    forward = {performer.key for performer in merge_performers(a, b)}
    backward = {performer.key for performer in merge_performers(b, a)}

    assert forward == backward == {"Q1", "Q2", "pending-performer-1"}


def test_inputs_are_not_mutated() -> None:
    existing = [_performer("Q1", instruments=("guitar",))]
    incoming = [_performer("Q1", instruments=("vocals",))]

    merge_performers(existing, incoming)

    assert existing[0].instruments == ("guitar",)
    assert incoming[0].instruments == ("vocals",)
