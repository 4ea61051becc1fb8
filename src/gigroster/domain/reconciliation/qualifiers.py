"""Membership qualifier extraction from ``has part`` statements."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gigroster.domain.model import ROLE_QUALIFIERS, Prop, Tenure

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gigroster.domain.model import Statement

_YEAR = re.compile(r"^([+-]?)(\d+)-")


@dataclass(frozen=True, slots=True)
class MembershipQualifiers:
    roles: tuple[str, ...] = ()
    start: int | None = None
    end: int | None = None

    @property
    def tenure(self) -> Tenure | None:
        if self.start is None and self.end is None:
            return None
        return Tenure(start=self.start, end=self.end)


def extract_membership(
    statement: Statement,
    *,
    role_properties: Sequence[str] = ROLE_QUALIFIERS,
) -> MembershipQualifiers:
    """Collect role ids and tenure years from a membership statement.

    Roles from every role property contribute in property order, duplicates
    removed. Only the first start/end time qualifier is considered.
    """

    roles: dict[str, None] = {}
    for property_id in role_properties:
        for role in statement.qualifier_values(property_id):
            roles.setdefault(role, None)
    return MembershipQualifiers(
        roles=tuple(roles),
        start=_first_year(statement, Prop.START_TIME),
        end=_first_year(statement, Prop.END_TIME),
    )


def year_from_timestamp(timestamp: str | None) -> int | None:
    """``+2010-05-00T00:00:00Z`` -> 2010, ``-0500-00-00T00:00:00Z`` -> -500."""

    if not timestamp:
        return None
    match = _YEAR.match(timestamp.strip())
    if match is None:
        return None
    sign, digits = match.groups()
    year = int(digits)
    return -year if sign == "-" else year


def _first_year(statement: Statement, property_id: str) -> int | None:
    # an unknown first value is not replaced by a later one
    snaks = statement.qualifiers.get(property_id, ())
    return year_from_timestamp(snaks[0].value) if snaks else None
