from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gigroster.adapters.memory import InMemorySnapshotStore
from gigroster.config import EngineConfig, build_wikidata_config
from tests.helpers.graph import FakeGraphClient

if TYPE_CHECKING:
    from collections.abc import Callable

    from gigroster.config import WikidataConfig

WIKIDATA_FIXTURES = Path(__file__).resolve().parent / "data" / "wikidata"

type WikidataPayload = dict[str, object]


@pytest.fixture
def load_wikidata_payload() -> Callable[[str], WikidataPayload]:
    def load(name: str) -> WikidataPayload:
        with (WIKIDATA_FIXTURES / name).open() as handle:
            return json.load(handle)

    return load


@pytest.fixture
def wikidata_config() -> WikidataConfig:
    config = build_wikidata_config(
        user_agent="gigroster-tests (tests@example.org)",
        request_timeout_seconds=2.0,
    )
    return replace(
        config,
        api=replace(config.api, cache=None),
        sparql=replace(config.sparql, cache=None),
    )


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(debounce_seconds=0.01)


@pytest.fixture
def graph() -> FakeGraphClient:
    return FakeGraphClient()


@pytest.fixture
def store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()
