"""Tests for request and engine configuration validation."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, time, timezone

import pytest

from availability_engine.domain.constraints import (
    EngineConfig,
    EngineConfigError,
    SchedulingValidationError,
    validate_engine_config,
    validate_scheduling_request,
)
from availability_engine.domain.models import SchedulingRequest


def valid_request(**overrides) -> SchedulingRequest:
    """Return a valid baseline request, optionally overriding fields."""
    request = SchedulingRequest(
        attendees=frozenset({"a@x.com", "b@x.com"}),
        duration_minutes=60,
        window_start=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
        window_end=datetime(2026, 3, 6, 17, 0, tzinfo=timezone.utc),
    )
    return replace(request, **overrides)


def valid_config(**overrides) -> EngineConfig:
    defaults = {
        "availability_weight": 0.7,
        "preference_weight": 0.3,
        "jitter_amplitude": 0.0,
        "max_slots_per_day": 5,
        "fetch_max_workers": 4,
        "fetch_timeout_seconds": 30.0,
    }
    defaults.update(overrides)
    return EngineConfig(**defaults)


# --- Baseline pass ---

def test_valid_request_passes() -> None:
    validate_scheduling_request(valid_request())


def test_valid_config_passes() -> None:
    validate_engine_config(valid_config())


# --- attendees ---

def test_empty_attendees_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(attendees=frozenset()))


def test_blank_attendee_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(attendees=frozenset({"a@x.com", "  "})))


# --- duration ---

@pytest.mark.parametrize("duration", [0, -30, 14, 481])
def test_duration_out_of_range_raises(duration: int) -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(duration_minutes=duration))


@pytest.mark.parametrize("duration", [15, 480])
def test_duration_boundaries_pass(duration: int) -> None:
    validate_scheduling_request(valid_request(duration_minutes=duration))


# --- window ---

def test_inverted_window_raises() -> None:
    request = valid_request()
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(
            replace(request, window_start=request.window_end, window_end=request.window_start)
        )


def test_naive_window_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(
            valid_request(
                window_start=datetime(2026, 3, 2, 9, 0),
                window_end=datetime(2026, 3, 2, 17, 0),
            )
        )


# --- working days and hours ---

def test_empty_working_days_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(working_days=frozenset()))


def test_unknown_weekday_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(working_days=frozenset({0, 7})))


def test_inverted_working_hours_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(
            valid_request(working_hours_start=time(17, 0), working_hours_end=time(9, 0))
        )


# --- alignment, limits, thresholds ---

@pytest.mark.parametrize("alignment", [0, 4, 7])
def test_invalid_alignment_raises(alignment: int) -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(alignment_minutes=alignment))


def test_zero_max_results_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(max_results=0))


def test_min_participants_above_attendee_count_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(min_participants_available=3))


def test_min_participants_zero_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(min_participants_available=0))


def test_negative_seed_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(seed=-1))


def test_unknown_time_zone_raises() -> None:
    with pytest.raises(SchedulingValidationError):
        validate_scheduling_request(valid_request(time_zone="Mars/Olympus_Mons"))


# --- engine config ---

def test_weights_not_summing_to_one_raise() -> None:
    with pytest.raises(EngineConfigError):
        validate_engine_config(valid_config(availability_weight=0.8, preference_weight=0.3))


def test_negative_weight_raises() -> None:
    with pytest.raises(EngineConfigError):
        validate_engine_config(valid_config(availability_weight=-0.1, preference_weight=1.1))


def test_excessive_jitter_raises() -> None:
    with pytest.raises(EngineConfigError):
        validate_engine_config(valid_config(jitter_amplitude=0.5))


def test_zero_day_cap_raises() -> None:
    with pytest.raises(EngineConfigError):
        validate_engine_config(valid_config(max_slots_per_day=0))


def test_zero_workers_raise() -> None:
    with pytest.raises(EngineConfigError):
        validate_engine_config(valid_config(fetch_max_workers=0))


def test_zero_timeout_raises() -> None:
    with pytest.raises(EngineConfigError):
        validate_engine_config(valid_config(fetch_timeout_seconds=0))
