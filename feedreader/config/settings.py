"""Client settings and runtime config resolution.

Centralizes environment-backed defaults and the resolution rules shared by
the CLI and the service layer.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

# API env names and defaults
ENV_API_BASE_URL = "FEEDREADER_API_BASE_URL"
ENV_API_TIMEOUT = "FEEDREADER_API_TIMEOUT"
DEFAULT_API_BASE_URL = "http://localhost:3000/api"
DEFAULT_API_TIMEOUT = 30

# Bulk fetch env names and defaults
ENV_PAGE_SIZE = "FEEDREADER_PAGE_SIZE"
DEFAULT_PAGE_SIZE = 50
PAGE_SIZE_CHOICES = (25, 50, 100, 200)

# Query cache env names and defaults
ENV_CACHE_TTL = "FEEDREADER_CACHE_TTL"
DEFAULT_CACHE_TTL = 300


def _clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class APISettings:
    base_url: str
    timeout: float


@dataclass(frozen=True)
class BulkFetchSettings:
    page_size: int


@dataclass(frozen=True)
class CacheSettings:
    ttl_seconds: int


@dataclass(frozen=True)
class AppSettings:
    api: APISettings
    bulk_fetch: BulkFetchSettings
    cache: CacheSettings


def resolve_api_settings(
    base_url_override: Optional[str] = None,
    env: Mapping[str, str] = os.environ,
) -> APISettings:
    base_url = (base_url_override or env.get(ENV_API_BASE_URL) or DEFAULT_API_BASE_URL).strip()
    if not base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid {ENV_API_BASE_URL} '{base_url}'. Expected an http(s) URL."
        )

    timeout = _clamp(_read_int(env, ENV_API_TIMEOUT, DEFAULT_API_TIMEOUT), 1, 300)

    return APISettings(base_url=base_url.rstrip("/"), timeout=float(timeout))


def resolve_bulk_fetch_settings(
    page_size_override: Optional[int] = None,
    env: Mapping[str, str] = os.environ,
) -> BulkFetchSettings:
    if page_size_override is not None:
        page_size = page_size_override
    else:
        page_size = _read_int(env, ENV_PAGE_SIZE, DEFAULT_PAGE_SIZE)

    return BulkFetchSettings(page_size=_clamp(page_size, 1, 200))


def resolve_cache_settings(env: Mapping[str, str] = os.environ) -> CacheSettings:
    ttl = _read_int(env, ENV_CACHE_TTL, DEFAULT_CACHE_TTL)
    return CacheSettings(ttl_seconds=_clamp(ttl, 0, 86400))


def get_app_settings(
    *,
    base_url_override: Optional[str] = None,
    page_size_override: Optional[int] = None,
    env: Mapping[str, str] = os.environ,
) -> AppSettings:
    return AppSettings(
        api=resolve_api_settings(base_url_override=base_url_override, env=env),
        bulk_fetch=resolve_bulk_fetch_settings(page_size_override=page_size_override, env=env),
        cache=resolve_cache_settings(env=env),
    )
