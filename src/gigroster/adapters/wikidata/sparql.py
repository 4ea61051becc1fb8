"""Render reverse-relationship graph patterns to SPARQL."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gigroster.domain.ports import ReverseRelationshipQuery

_ENTITY_ID = re.compile(r"^[PQ][1-9]\d*$")
_VARIABLE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_LANGUAGE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]+)*$")


def render_reverse_relationship(query: ReverseRelationshipQuery) -> str:
    """Render ``query`` as a SPARQL ``SELECT``.

    Identifiers, variable names and languages are validated before being
    interpolated; anything else raises ``ValueError``.
    """

    _check(_ENTITY_ID, query.predicate, "predicate")
    _check(_ENTITY_ID, query.object_id, "object id")
    _check(_VARIABLE, query.subject_variable, "subject variable")
    _check(_LANGUAGE, query.language, "language")
    if query.subject_type is not None:
        _check(_ENTITY_ID, query.subject_type, "subject type")
    if query.sitelink_language is not None:
        _check(_LANGUAGE, query.sitelink_language, "sitelink language")

    subject = f"?{query.subject_variable}"
    selected = [subject, f"{subject}Label"]
    patterns = [f"{subject} wdt:{query.predicate} wd:{query.object_id} ."]
    if query.subject_type is not None:
        patterns.append(f"{subject} wdt:P31 wd:{query.subject_type} .")

    for projection in query.projections:
        _check(_VARIABLE, projection.variable, "projection variable")
        _check(_ENTITY_ID, projection.predicate, "projection predicate")
        variable = f"?{projection.variable}"
        selected.append(variable)
        if projection.with_label:
            selected.append(f"{variable}Label")
        patterns.append(f"OPTIONAL {{ {subject} wdt:{projection.predicate} {variable} . }}")

    if query.sitelink_language is not None:
        selected.append("?wikipedia")
        patterns.append(
            "OPTIONAL { ?wikipedia schema:about "
            f"{subject} ; schema:isPartOf <https://{query.sitelink_language}.wikipedia.org/> . }}"
        )

    patterns.append(
        f'SERVICE wikibase:label {{ bd:serviceParam wikibase:language "{query.language}" . }}'
    )

    lines = [f"SELECT DISTINCT {' '.join(selected)} WHERE {{"]
    lines.extend(f"  {pattern}" for pattern in patterns)
    lines.append("}")
    lines.append(f"ORDER BY {subject}Label")
    if query.limit is not None:
        lines.append(f"LIMIT {int(query.limit)}")
    return "\n".join(lines)


def _check(pattern: re.Pattern[str], value: str, what: str) -> None:
    if not pattern.fullmatch(value):
        raise ValueError(f"Invalid {what} for SPARQL query: {value!r}")
