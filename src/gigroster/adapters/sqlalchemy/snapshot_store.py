"""SQLAlchemy-backed snapshot store."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, insert, select, update

from gigroster.config.storage import get_snapshot_database_config

from .mappings import create_all_tables, roster_snapshots_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from gigroster.domain.ports import JsonValue

log = getLogger(__name__)


class SqlAlchemySnapshotStore:
    """Key-value snapshot store on a single ``roster_snapshots`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        create_all_tables(engine)

    @classmethod
    def from_uri(cls, database_uri: str | None = None) -> SqlAlchemySnapshotStore:
        uri = database_uri or get_snapshot_database_config().uri
        log.debug("Opening snapshot database %s", uri)
        return cls(create_engine(uri, future=True))

    def get(self, key: str) -> JsonValue | None:
        statement = select(roster_snapshots_table.c.payload).where(
            roster_snapshots_table.c.key == key
        )
        with self._engine.connect() as connection:
            return connection.execute(statement).scalar_one_or_none()

    def set(self, key: str, value: JsonValue) -> None:
        now = datetime.now(tz=UTC)
        table = roster_snapshots_table
        with self._engine.begin() as connection:
            result = connection.execute(
                update(table).where(table.c.key == key).values(payload=value, updated_at=now)
            )
            if result.rowcount == 0:
                connection.execute(insert(table).values(key=key, payload=value, updated_at=now))

    def clear(self, key: str) -> None:
        with self._engine.begin() as connection:
            connection.execute(
                delete(roster_snapshots_table).where(roster_snapshots_table.c.key == key)
            )

    def keys(self) -> list[str]:
        statement = select(roster_snapshots_table.c.key).order_by(roster_snapshots_table.c.key)
        with self._engine.connect() as connection:
            return list(connection.execute(statement).scalars())

    def dispose(self) -> None:
        self._engine.dispose()
