"""Application configuration helpers."""

from __future__ import annotations

from .engine import EngineConfig, get_engine_config
from .env import optional_float_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import (
    SnapshotDatabaseConfig,
    StorageConfig,
    get_snapshot_database_config,
    get_storage_config,
)
from .wikidata import WikidataConfig, build_wikidata_config, get_wikidata_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "EngineConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SnapshotDatabaseConfig",
    "StorageConfig",
    "WikidataConfig",
    "build_wikidata_config",
    "configure_logging",
    "get_engine_config",
    "get_snapshot_database_config",
    "get_storage_config",
    "get_wikidata_config",
    "optional_float_env",
    "require_env_vars",
]
