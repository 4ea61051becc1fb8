"""Deduplicating merge of performer lists."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import TYPE_CHECKING

from gigroster.domain.model import Performer

from .projection import dedupe

if TYPE_CHECKING:
    from collections.abc import Iterable

_MULTI_VALUED = frozenset({"instruments"})
_SCALARS = tuple(field.name for field in fields(Performer) if field.name not in _MULTI_VALUED)


def merge_performers(
    existing: Iterable[Performer], incoming: Iterable[Performer]
) -> list[Performer]:
    """Merge ``incoming`` into ``existing`` keyed on the external id, else the local id.

    Output order is the first appearance of each key across ``existing`` then
    ``incoming``. Instruments are unioned in first-seen order; scalar fields take
    the incoming value when it is non-empty. Duplicate keys inside either list
    collapse the same way.
    """

    merged: dict[str, Performer] = {}
    for performer in (*existing, *incoming):
        current = merged.get(performer.key)
        merged[performer.key] = (
            performer if current is None else merge_performer(current, performer)
        )
    return list(merged.values())


def merge_performer(current: Performer, update: Performer) -> Performer:
    changes: dict[str, object] = {
        name: getattr(update, name)
        for name in _SCALARS
        if _has_value(getattr(update, name))
    }
    changes["instruments"] = dedupe((*current.instruments, *update.instruments))
    return replace(current, **changes)


def _has_value(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return not (hasattr(value, "is_empty") and value.is_empty)
