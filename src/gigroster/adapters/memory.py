"""In-memory snapshot store for tests and ephemeral sessions."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gigroster.domain.ports import JsonValue


class InMemorySnapshotStore:
    def __init__(self) -> None:
        self._values: dict[str, JsonValue] = {}

    def get(self, key: str) -> JsonValue | None:
        value = self._values.get(key)
        return copy.deepcopy(value)

    def set(self, key: str, value: JsonValue) -> None:
        self._values[key] = copy.deepcopy(value)

    def clear(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)
