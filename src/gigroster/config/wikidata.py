"""Wikidata configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, cast

from .env import optional_float_env, require_env_vars
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

type CacheBackend = Literal["sqlite", "memory"]

DEFAULT_WIKIDATA_API_BASE_URL = "https://www.wikidata.org/w"
DEFAULT_WIKIDATA_SPARQL_BASE_URL = "https://query.wikidata.org"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 15.0
CACHE_BACKENDS: tuple[CacheBackend, ...] = ("sqlite", "memory")


@dataclass(frozen=True, slots=True)
class WikidataConfig:
    api: ResilienceConfig
    sparql: ResilienceConfig
    languages: tuple[str, ...] = ("en",)
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @property
    def language(self) -> str:
        return self.languages[0]


def cacheable_payload(payload: object) -> bool:
    """Refuse to cache API-level error documents."""

    return not (isinstance(payload, dict) and "error" in payload)


def build_wikidata_config(
    *,
    user_agent: str,
    languages: tuple[str, ...] = ("en",),
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    api_base_url: str = DEFAULT_WIKIDATA_API_BASE_URL,
    sparql_base_url: str = DEFAULT_WIKIDATA_SPARQL_BASE_URL,
    cache_backend: CacheBackend = "memory",
) -> WikidataConfig:
    cache = CacheConfig(enabled=True, backend=cache_backend, should_cache=cacheable_payload)
    api = ResilienceConfig(
        name="wikidata-api",
        base_url=api_base_url,
        timeout_seconds=request_timeout_seconds,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        retry=RetryPolicy(total=3),
        cache=cache,
        default_headers={"User-Agent": user_agent},
    )
    sparql = ResilienceConfig(
        name="wikidata-sparql",
        base_url=sparql_base_url,
        timeout_seconds=request_timeout_seconds,
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        retry=RetryPolicy(total=2),
        cache=cache,
        default_headers={
            "User-Agent": user_agent,
            "Accept": "application/sparql-results+json",
        },
    )
    return WikidataConfig(
        api=api,
        sparql=sparql,
        languages=languages,
        request_timeout_seconds=request_timeout_seconds,
    )


def get_wikidata_config() -> WikidataConfig:
    values = require_env_vars(("WIKIDATA_APP_NAME", "WIKIDATA_CONTACT"))
    user_agent = f"{values['WIKIDATA_APP_NAME']} ({values['WIKIDATA_CONTACT']})"
    timeout = optional_float_env(
        "WIKIDATA_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS
    )
    return build_wikidata_config(
        user_agent=user_agent,
        request_timeout_seconds=timeout,
        cache_backend=_cache_backend_env("GIGROSTER_HTTP_CACHE_BACKEND", "sqlite"),
    )


def _cache_backend_env(name: str, default: CacheBackend) -> CacheBackend:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw not in CACHE_BACKENDS:
        choices = ", ".join(CACHE_BACKENDS)
        raise ConfigurationError(f"Invalid cache backend for {name}: {raw!r} (expected {choices})")
    return cast("CacheBackend", raw)
