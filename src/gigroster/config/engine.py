"""Reconciliation engine tuning values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env

DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_MIN_QUERY_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 10


@dataclass(frozen=True, slots=True)
class EngineConfig:
    min_query_length: int = DEFAULT_MIN_QUERY_LENGTH
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    search_limit: int = DEFAULT_SEARCH_LIMIT
    language: str = "en"


def get_engine_config() -> EngineConfig:
    debounce_ms = optional_float_env(
        "GIGROSTER_SEARCH_DEBOUNCE_MS", DEFAULT_DEBOUNCE_SECONDS * 1000
    )
    return EngineConfig(debounce_seconds=debounce_ms / 1000)
