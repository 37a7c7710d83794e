"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.domain.streams import ConflictPolicy
from db.config import load_env_files

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


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
class StreamIngestionSettings:
    """
    Runtime settings for stream file preview and import.
    """

    batch_size: int = 1000
    max_warnings: int = 500
    log_row_warnings: bool = True
    default_week_format: str = "MM/dd/yyyy"
    default_source: str = "us"
    conflict_policy: ConflictPolicy = ConflictPolicy.SKIP
    align_week_start: bool = False
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES


@dataclass(frozen=True)
class AnalyticsSettings:
    """
    Tunables for aggregation and outlier ranking.
    """

    outlier_window: int = 8
    outlier_min_weeks: int = 3
    outlier_limit: int = 50
    rising_threshold_pct: float = 30.0
    growth_display_decimals: int = 1


@lru_cache(maxsize=1)
def get_stream_ingestion_settings() -> StreamIngestionSettings:
    """
    Return cached stream ingestion settings from environment variables.
    """

    return StreamIngestionSettings(
        batch_size=max(1, _get_int_env("STREAM_INGEST_BATCH_SIZE", 1000)),
        max_warnings=max(1, _get_int_env("STREAM_INGEST_MAX_WARNINGS", 500)),
        log_row_warnings=_get_bool_env("STREAM_INGEST_LOG_ROW_WARNINGS", True),
        default_week_format=_get_str_env("STREAM_INGEST_WEEK_FORMAT", "MM/dd/yyyy"),
        default_source=_get_str_env("STREAM_INGEST_DEFAULT_SOURCE", "us").lower(),
        conflict_policy=ConflictPolicy.parse(_get_str_env("STREAM_INGEST_CONFLICT_POLICY", "skip")),
        align_week_start=_get_bool_env("STREAM_INGEST_ALIGN_WEEK_START", False),
        max_upload_bytes=max(1, _get_int_env("STREAM_INGEST_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)),
    )


@lru_cache(maxsize=1)
def get_analytics_settings() -> AnalyticsSettings:
    """
    Return cached analytics settings from environment variables.
    """

    return AnalyticsSettings(
        outlier_window=max(1, _get_int_env("ANALYTICS_OUTLIER_WINDOW", 8)),
        outlier_min_weeks=max(3, _get_int_env("ANALYTICS_OUTLIER_MIN_WEEKS", 3)),
        outlier_limit=max(1, _get_int_env("ANALYTICS_OUTLIER_LIMIT", 50)),
        rising_threshold_pct=_get_float_env("ANALYTICS_RISING_THRESHOLD_PCT", 30.0),
        growth_display_decimals=max(0, _get_int_env("ANALYTICS_GROWTH_DISPLAY_DECIMALS", 1)),
    )
