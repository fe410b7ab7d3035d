"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_DISABLED_VALUES = {"", "none", "off", "null"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_int_env(name: str, default: int | None) -> int | None:
    """
    Read an integer that may be switched off with `none`/`off`/empty.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    if raw_value.strip().lower() in _DISABLED_VALUES:
        return None
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class CSVImportSettings:
    """
    Runtime settings for PR tracker CSV imports.
    """

    batch_size: int = 10
    batch_delay_seconds: float = 0.1
    owner_ref: str = "csv-import-system-user"
    default_country: str = "Canada"
    header_strategy: str = "sentinel"
    step_mapping: str = "primary"
    min_year: int | None = 2020
    max_year: int | None = 2030
    log_row_results: bool = True


@dataclass(frozen=True)
class CacheSettings:
    """
    TTLs for the in-process dashboard cache.
    """

    default_ttl_seconds: float = 300.0
    chart_ttl_seconds: float = 600.0


@lru_cache(maxsize=1)
def get_csv_import_settings() -> CSVImportSettings:
    """
    Return cached CSV import settings from environment variables.
    """

    return CSVImportSettings(
        batch_size=max(1, _get_int_env("CSV_IMPORT_BATCH_SIZE", 10)),
        batch_delay_seconds=max(0.0, _get_float_env("CSV_IMPORT_BATCH_DELAY_SECONDS", 0.1)),
        owner_ref=_get_str_env("CSV_IMPORT_OWNER_REF", "csv-import-system-user"),
        default_country=_get_str_env("CSV_IMPORT_DEFAULT_COUNTRY", "Canada"),
        header_strategy=_get_str_env("CSV_IMPORT_HEADER_STRATEGY", "sentinel").lower(),
        step_mapping=_get_str_env("CSV_IMPORT_STEP_MAPPING", "primary").lower(),
        min_year=_get_optional_int_env("CSV_IMPORT_MIN_YEAR", 2020),
        max_year=_get_optional_int_env("CSV_IMPORT_MAX_YEAR", 2030),
        log_row_results=_get_bool_env("CSV_IMPORT_LOG_ROW_RESULTS", True),
    )


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    """
    Return cached dashboard cache TTL settings.
    """

    return CacheSettings(
        default_ttl_seconds=max(0.0, _get_float_env("CACHE_DEFAULT_TTL_SECONDS", 300.0)),
        chart_ttl_seconds=max(0.0, _get_float_env("CACHE_CHART_TTL_SECONDS", 600.0)),
    )
