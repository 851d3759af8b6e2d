from __future__ import annotations

import time as time_module
from dataclasses import replace
from datetime import datetime, time, timedelta, timezone

from availability_engine.domain.constraints import EngineConfig
from availability_engine.domain.intervals import TimeInterval
from availability_engine.domain.models import SchedulingError, SchedulingRequest
from availability_engine.repository.calendar_source import InMemoryCalendarSource
from availability_engine.repository.synthetic_calendar import SyntheticCalendarSource
from availability_engine.services.scheduling_facade import SchedulingFacade
from availability_engine.utils.config import get_settings


MONDAY = datetime(2026, 3, 2, tzinfo=timezone.utc)
BUSY_HOUR = TimeInterval(start=MONDAY.replace(hour=10), end=MONDAY.replace(hour=11))


def _build_test_settings(**overrides):
    get_settings.cache_clear()
    base = get_settings()
    values = {
        "scoring_jitter_amplitude": 0.0,
        "calendar_fetch_max_workers": 2,
        "calendar_fetch_timeout_seconds": 5.0,
    }
    values.update(overrides)
    return replace(base, **values)


def _facade(**overrides) -> SchedulingFacade:
    return SchedulingFacade(settings=_build_test_settings(**overrides))


def _request(**overrides) -> SchedulingRequest:
    request = SchedulingRequest(
        attendees=frozenset({"a@x.com", "b@x.com"}),
        duration_minutes=60,
        window_start=MONDAY.replace(hour=9),
        window_end=MONDAY.replace(hour=17),
    )
    return replace(request, **overrides)


def test_busy_hour_is_avoided_for_both_attendees() -> None:
    source = InMemoryCalendarSource({"a@x.com": [BUSY_HOUR], "b@x.com": []})

    result = _facade().find_available_slots(_request(), source)

    assert result.ok
    assert result.error is None
    assert result.degraded_participants == ()
    assert 1 <= len(result.slots) <= 5
    starts = {slot.start for slot in result.slots}
    assert MONDAY.replace(hour=9) in starts
    assert MONDAY.replace(hour=11) in starts
    for slot in result.slots:
        assert not slot.interval.overlaps(BUSY_HOUR)
        assert time(9, 0) <= slot.start.time()
        assert slot.end.time() <= time(17, 0)
        assert slot.available_participants == frozenset({"a@x.com", "b@x.com"})
        assert slot.reason.startswith("All participants available")
    assert sum(slot.is_recommended for slot in result.slots) == 1
    assert result.message == f"Found {len(result.slots)} available slot(s)"


def test_weekend_window_reports_no_availability() -> None:
    saturday = MONDAY + timedelta(days=5)
    request = _request(window_start=saturday, window_end=saturday + timedelta(days=2))

    result = _facade().find_available_slots(request, InMemoryCalendarSource())

    assert result.error is SchedulingError.NO_AVAILABILITY
    assert result.slots == ()
    assert not result.ok


def test_invalid_request_is_reported_without_raising() -> None:
    request = _request(window_start=MONDAY.replace(hour=17), window_end=MONDAY.replace(hour=9))

    result = _facade().find_available_slots(request, InMemoryCalendarSource())

    assert result.error is SchedulingError.INVALID_REQUEST
    assert "window" in result.message


def test_short_duration_is_invalid() -> None:
    result = _facade().find_available_slots(_request(duration_minutes=10), InMemoryCalendarSource())

    assert result.error is SchedulingError.INVALID_REQUEST


def test_failing_participant_is_treated_as_free_and_reported() -> None:
    source = InMemoryCalendarSource(
        {"a@x.com": [BUSY_HOUR]},
        failing_participants={"b@x.com"},
    )

    result = _facade().find_available_slots(_request(), source)

    assert result.ok
    assert result.degraded_participants == ("b@x.com",)
    for slot in result.slots:
        assert not slot.interval.overlaps(BUSY_HOUR)


def test_participant_without_calendar_data_is_degraded() -> None:
    source = InMemoryCalendarSource({"a@x.com": []})

    result = _facade().find_available_slots(_request(), source)

    assert result.ok
    assert result.degraded_participants == ("b@x.com",)


def test_source_failing_for_everyone_is_unavailable() -> None:
    source = InMemoryCalendarSource(failing_participants={"a@x.com", "b@x.com"})

    result = _facade().find_available_slots(_request(), source)

    assert result.error is SchedulingError.SOURCE_UNAVAILABLE
    assert result.degraded_participants == ("a@x.com", "b@x.com")


def test_fully_booked_attendee_blocks_unless_threshold_is_relaxed() -> None:
    whole_day = TimeInterval(start=MONDAY, end=MONDAY + timedelta(days=1))
    source = InMemoryCalendarSource({"a@x.com": [], "b@x.com": [whole_day]})
    facade = _facade()

    strict = facade.find_available_slots(_request(), source)
    relaxed = facade.find_available_slots(_request(min_participants_available=1), source)

    assert strict.error is SchedulingError.NO_AVAILABILITY
    assert relaxed.ok
    for slot in relaxed.slots:
        assert slot.available_participants == frozenset({"a@x.com"})
        assert slot.unavailable_participants == frozenset({"b@x.com"})
        assert slot.reason.startswith("1/2 participants available")


def test_identical_requests_produce_identical_results() -> None:
    request = _request(
        attendees=frozenset({"john.doe@company.com", "jane.smith@company.com"}),
        window_end=MONDAY + timedelta(days=4, hours=17),
    )
    facade = _facade(scoring_jitter_amplitude=0.1)

    first = facade.find_available_slots(request, SyntheticCalendarSource(busyness_level=0.5))
    second = facade.find_available_slots(request, SyntheticCalendarSource(busyness_level=0.5))

    assert first == second


def test_available_participants_are_never_double_booked() -> None:
    attendees = ["a@x.com", "b@x.com", "c@x.com"]
    request = _request(
        attendees=frozenset(attendees),
        window_end=MONDAY + timedelta(days=4, hours=17),
        min_participants_available=2,
        max_results=50,
    )
    source = SyntheticCalendarSource(busyness_level=0.7)
    busy = source.get_busy_intervals(set(attendees), request.window_start, request.window_end)

    result = _facade().find_available_slots(request, source)

    for slot in result.slots:
        assert len(slot.available_participants) >= 2
        for participant_id in slot.available_participants:
            for interval in busy[participant_id]:
                assert not slot.interval.overlaps(interval)


def test_explicit_engine_config_is_used() -> None:
    config = EngineConfig(
        availability_weight=0.7,
        preference_weight=0.3,
        jitter_amplitude=0.0,
        max_slots_per_day=1,
        fetch_max_workers=1,
        fetch_timeout_seconds=5.0,
    )
    facade = SchedulingFacade(settings=_build_test_settings(), config=config)
    request = _request(window_end=MONDAY + timedelta(days=2, hours=17))

    result = facade.find_available_slots(request, InMemoryCalendarSource())

    assert len(result.slots) == 3
    assert all(slot.is_recommended for slot in result.slots)


def test_spring_forward_night_window_resolves_without_error() -> None:
    request = _request(
        attendees=frozenset({"a@x.com"}),
        window_start=datetime(2026, 3, 8, tzinfo=timezone.utc),
        window_end=datetime(2026, 3, 9, tzinfo=timezone.utc),
        working_days=frozenset(range(7)),
        working_hours_start=time(0, 0),
        working_hours_end=time(6, 0),
        time_zone="America/New_York",
    )

    result = _facade().find_available_slots(request, InMemoryCalendarSource())

    assert result.ok
    for slot in result.slots:
        assert slot.end - slot.start == timedelta(minutes=60)


class _SlowBatchSource:
    """Answers single-participant lookups at once but stalls on batches."""

    def __init__(self, delay_seconds: float) -> None:
        self.delay_seconds = delay_seconds
        self.calls: list[set[str]] = []

    def get_busy_intervals(self, participant_ids, window_start, window_end):
        self.calls.append(set(participant_ids))
        if len(participant_ids) > 1:
            time_module.sleep(self.delay_seconds)
        return {participant_id: [] for participant_id in participant_ids}


def test_batched_lookup_past_deadline_falls_back_to_per_attendee_lookups() -> None:
    source = _SlowBatchSource(delay_seconds=1.0)
    facade = _facade(calendar_fetch_timeout_seconds=0.1)

    result = facade.find_available_slots(_request(), source)

    assert result.ok
    assert result.degraded_participants == ()
    assert {"a@x.com"} in source.calls
    assert {"b@x.com"} in source.calls
