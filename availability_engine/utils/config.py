"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from functools import lru_cache


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_time(name: str, default: time) -> time:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return time.fromisoformat(raw.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str = "Availability Resolution Engine"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_format: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    default_time_zone: str = "UTC"
    working_hours_start: time = time(9, 0)
    working_hours_end: time = time(17, 0)
    default_alignment_minutes: int = 15
    default_max_results: int = 20

    selection_max_slots_per_day: int = 5

    scoring_availability_weight: float = 0.7
    scoring_preference_weight: float = 0.3
    scoring_jitter_amplitude: float = 0.0

    calendar_fetch_max_workers: int = 4
    calendar_fetch_timeout_seconds: float = 30.0
    calendar_cache_ttl_seconds: float = 1800.0

    history_max_entries_per_user: int = 1000
    history_lookback_days: int = 90

    synthetic_busyness_level: float = 0.5


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings from environment variables, falling back to defaults."""
    defaults = Settings()
    return Settings(
        app_name=os.getenv("APP_NAME", defaults.app_name),
        app_version=os.getenv("APP_VERSION", defaults.app_version),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        log_format=os.getenv("LOG_FORMAT", defaults.log_format),
        default_time_zone=os.getenv("DEFAULT_TIME_ZONE", defaults.default_time_zone),
        working_hours_start=_env_time("WORKING_HOURS_START", defaults.working_hours_start),
        working_hours_end=_env_time("WORKING_HOURS_END", defaults.working_hours_end),
        default_alignment_minutes=_env_int(
            "DEFAULT_ALIGNMENT_MINUTES", defaults.default_alignment_minutes
        ),
        default_max_results=_env_int("DEFAULT_MAX_RESULTS", defaults.default_max_results),
        selection_max_slots_per_day=_env_int(
            "MAX_SLOTS_PER_DAY", defaults.selection_max_slots_per_day
        ),
        scoring_availability_weight=_env_float(
            "SCORING_AVAILABILITY_WEIGHT", defaults.scoring_availability_weight
        ),
        scoring_preference_weight=_env_float(
            "SCORING_PREFERENCE_WEIGHT", defaults.scoring_preference_weight
        ),
        scoring_jitter_amplitude=_env_float(
            "SCORING_JITTER_AMPLITUDE", defaults.scoring_jitter_amplitude
        ),
        calendar_fetch_max_workers=_env_int(
            "CALENDAR_FETCH_MAX_WORKERS", defaults.calendar_fetch_max_workers
        ),
        calendar_fetch_timeout_seconds=_env_float(
            "CALENDAR_FETCH_TIMEOUT_SECONDS", defaults.calendar_fetch_timeout_seconds
        ),
        calendar_cache_ttl_seconds=_env_float(
            "CALENDAR_CACHE_TTL_SECONDS", defaults.calendar_cache_ttl_seconds
        ),
        history_max_entries_per_user=_env_int(
            "HISTORY_MAX_ENTRIES_PER_USER", defaults.history_max_entries_per_user
        ),
        history_lookback_days=_env_int("HISTORY_LOOKBACK_DAYS", defaults.history_lookback_days),
        synthetic_busyness_level=_env_float(
            "SYNTHETIC_BUSYNESS_LEVEL", defaults.synthetic_busyness_level
        ),
    )
