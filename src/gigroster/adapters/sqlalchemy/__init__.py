"""SQLAlchemy adapter package for gigroster."""

from __future__ import annotations

from .mappings import create_all_tables, metadata, roster_snapshots_table
from .snapshot_store import SqlAlchemySnapshotStore

__all__ = [
    "SqlAlchemySnapshotStore",
    "create_all_tables",
    "metadata",
    "roster_snapshots_table",
]
