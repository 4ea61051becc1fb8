"""Wikidata graph adapter."""

from __future__ import annotations

from .client import WikidataClient
from .sparql import render_reverse_relationship

__all__ = ["WikidataClient", "render_reverse_relationship"]
