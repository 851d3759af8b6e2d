"""Domain-level validation rules for scheduling requests and engine tuning."""

from __future__ import annotations

import math
from dataclasses import dataclass

import pytz

from availability_engine.domain.models import SchedulingRequest


MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 480
MIN_ALIGNMENT_MINUTES = 5
MAX_RESULTS_LIMIT = 50
MAX_JITTER_AMPLITUDE = 0.2


class SchedulingValidationError(Exception):
    """Raised when a scheduling request is malformed."""


class EngineConfigError(ValueError):
    """Raised when scoring or selection tuning is inconsistent."""


@dataclass(frozen=True)
class EngineConfig:
    availability_weight: float
    preference_weight: float
    jitter_amplitude: float
    max_slots_per_day: int
    fetch_max_workers: int
    fetch_timeout_seconds: float


def validate_engine_config(config: EngineConfig) -> None:
    if not 0.0 <= config.availability_weight <= 1.0:
        raise EngineConfigError("availability_weight must be between 0 and 1")
    if not 0.0 <= config.preference_weight <= 1.0:
        raise EngineConfigError("preference_weight must be between 0 and 1")
    if not math.isclose(config.availability_weight + config.preference_weight, 1.0, abs_tol=1e-6):
        raise EngineConfigError("availability_weight and preference_weight must sum to 1")
    if not 0.0 <= config.jitter_amplitude <= MAX_JITTER_AMPLITUDE:
        raise EngineConfigError(f"jitter_amplitude must be between 0 and {MAX_JITTER_AMPLITUDE}")
    if config.max_slots_per_day <= 0:
        raise EngineConfigError("max_slots_per_day must be > 0")
    if config.fetch_max_workers <= 0:
        raise EngineConfigError("fetch_max_workers must be > 0")
    if config.fetch_timeout_seconds <= 0:
        raise EngineConfigError("fetch_timeout_seconds must be > 0")


def _is_aware(value) -> bool:
    return value.tzinfo is not None and value.tzinfo.utcoffset(value) is not None


def validate_scheduling_request(request: SchedulingRequest) -> None:
    """Reject malformed requests before any calendar lookup happens."""
    if not request.attendees:
        raise SchedulingValidationError("attendees must contain at least one participant")
    for attendee in request.attendees:
        if not isinstance(attendee, str) or not attendee.strip():
            raise SchedulingValidationError("attendee identifiers must be non-empty strings")

    if not MIN_DURATION_MINUTES <= request.duration_minutes <= MAX_DURATION_MINUTES:
        raise SchedulingValidationError(
            f"duration_minutes must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES}"
        )

    if not _is_aware(request.window_start) or not _is_aware(request.window_end):
        raise SchedulingValidationError("window_start and window_end must be timezone-aware")
    if request.window_start >= request.window_end:
        raise SchedulingValidationError("window_start must be before window_end")

    if not request.working_days:
        raise SchedulingValidationError("working_days must contain at least one weekday")
    if any(day not in range(7) for day in request.working_days):
        raise SchedulingValidationError("working_days values must be weekdays 0 (Mon) to 6 (Sun)")
    if request.working_hours_start >= request.working_hours_end:
        raise SchedulingValidationError("working_hours_start must be before working_hours_end")

    alignment = request.alignment_minutes
    if alignment < MIN_ALIGNMENT_MINUTES or (24 * 60) % alignment != 0:
        raise SchedulingValidationError(
            f"alignment_minutes must be >= {MIN_ALIGNMENT_MINUTES} and divide a day evenly"
        )

    if not 1 <= request.max_results <= MAX_RESULTS_LIMIT:
        raise SchedulingValidationError(f"max_results must be between 1 and {MAX_RESULTS_LIMIT}")
    if request.min_participants_available is not None and not (
        1 <= request.min_participants_available <= len(request.attendees)
    ):
        raise SchedulingValidationError(
            "min_participants_available must be between 1 and the number of attendees"
        )
    if request.max_slots_per_day is not None and request.max_slots_per_day <= 0:
        raise SchedulingValidationError("max_slots_per_day must be > 0")
    if request.seed is not None and request.seed < 0:
        raise SchedulingValidationError("seed must be non-negative")

    try:
        pytz.timezone(request.time_zone)
    except pytz.UnknownTimeZoneError as exc:
        raise SchedulingValidationError(f"unknown time_zone '{request.time_zone}'") from exc
