"""Port for the local snapshot persistence collaborator."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

type JsonValue = dict[str, JsonValue] | list[JsonValue] | str | int | float | bool | None


@runtime_checkable
class SnapshotStore(Protocol):
    """Key-value store for serialized roster, pending and selection snapshots."""

    def get(self, key: str) -> JsonValue | None: ...

    def set(self, key: str, value: JsonValue) -> None: ...

    def clear(self, key: str) -> None: ...
