from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_BACKEND_ENV = "READING_STORE_BACKEND"
_SUPABASE_URL_ENV = "SUPABASE_URL"
_SUPABASE_KEY_ENV = "SUPABASE_SERVICE_ROLE_KEY"
_SUPABASE_TABLE_ENV = "SUPABASE_TABLE"
_PERSISTENCE_PATH_ENV = "READINGS_PERSISTENCE_PATH"
_STORE_TIMEOUT_ENV = "STORE_TIMEOUT_SECONDS"
_HOST_ENV = "HOST"
_PORT_ENV = "PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

STORE_BACKENDS = ("memory", "supabase")


@dataclass(frozen=True)
class Settings:
    store_backend: str
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    table_name: str
    persistence_path: Optional[str]
    store_timeout: float
    host: str
    port: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_number(name: str, default: float, cast: type = float):
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = cast(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def _read_store_backend(url: Optional[str], key: Optional[str]) -> str:
    default = "supabase" if url and key else "memory"
    candidate = _read_str_env(_STORE_BACKEND_ENV, default).lower()
    return candidate if candidate in STORE_BACKENDS else default


@lru_cache
def get_settings() -> Settings:
    url = _read_optional_env(_SUPABASE_URL_ENV, None)
    key = _read_optional_env(_SUPABASE_KEY_ENV, None)
    return Settings(
        store_backend=_read_store_backend(url, key),
        supabase_url=url,
        supabase_key=key,
        table_name=_read_str_env(_SUPABASE_TABLE_ENV, "sensor_readings"),
        persistence_path=_read_optional_env(_PERSISTENCE_PATH_ENV, None),
        store_timeout=_read_positive_number(_STORE_TIMEOUT_ENV, 10.0),
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_positive_number(_PORT_ENV, 3000, cast=int),
        log_level=_read_log_level("INFO"),
    )
