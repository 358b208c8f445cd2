"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import TypeVar

from db.config import load_env_files

DEFAULT_UPLOAD_MAX_BYTES = 10 * 1024 * 1024

_T = TypeVar("_T")

@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()

def _read_env(name: str, default: _T, parse: Callable[[str], _T]) -> _T:
    """
    Parse one environment variable, falling back to ``default`` when it is
    unset, blank, or unparseable.
    """

    _load_env_once()
    raw_value = (os.getenv(name) or "").strip()
    if not raw_value:
        return default
    try:
        return parse(raw_value)
    except ValueError:
        return default

def _parse_flag(raw_value: str) -> bool:
    return raw_value.lower() in {"1", "true", "yes", "on"}

@dataclass(frozen=True)
class CSVIngestionSettings:
    """
    Runtime settings for bulk CSV ingestion.

    ``row_delay_seconds`` pauses after each row so pollers can watch
    progress advance; zero disables it.
    """

    row_delay_seconds: float = 0.0
    log_validation_errors: bool = True
    max_upload_bytes: int = DEFAULT_UPLOAD_MAX_BYTES

@dataclass(frozen=True)
class DashboardSettings:
    """
    Pagination bounds for dashboard queries.
    """

    default_limit: int = 20
    max_limit: int = 100

@lru_cache(maxsize=1)
def get_csv_ingestion_settings() -> CSVIngestionSettings:
    """
    Return cached CSV ingestion settings from environment variables.
    """

    return CSVIngestionSettings(
        row_delay_seconds=max(0.0, _read_env("CSV_INGEST_ROW_DELAY_SECONDS", 0.0, float)),
        log_validation_errors=_read_env("CSV_INGEST_LOG_VALIDATION_ERRORS", True, _parse_flag),
        max_upload_bytes=max(1, _read_env("UPLOAD_MAX_BYTES", DEFAULT_UPLOAD_MAX_BYTES, int)),
    )

@lru_cache(maxsize=1)
def get_dashboard_settings() -> DashboardSettings:
    """
    Return cached dashboard pagination settings.
    """

    max_limit = max(1, _read_env("DASHBOARD_MAX_LIMIT", 100, int))
    default_limit = min(max_limit, max(1, _read_env("DASHBOARD_DEFAULT_LIMIT", 20, int)))
    return DashboardSettings(default_limit=default_limit, max_limit=max_limit)
