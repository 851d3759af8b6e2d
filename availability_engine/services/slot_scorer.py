"""Heuristic slot scoring.

Scores are arithmetic over slot attributes; nothing is learned. The weighting
follows a fixed policy:

    score = availability_weight * available/total
          + preference_weight * preference
          + jitter

``preference`` blends time of day, day of week, season, attendee count and
meeting duration, each normalised to [0, 1]. ``jitter`` is optional and keyed
off the request seed plus the slot start, so equal inputs always score equal.
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Optional

import pytz

from availability_engine.domain.constraints import EngineConfig, validate_engine_config
from availability_engine.domain.models import CandidateSlot, ScoredSlot, SchedulingRequest
from availability_engine.utils.config import Settings, get_settings
from availability_engine.utils.seeding import derive_request_seed, derive_seed


TIME_OF_DAY_SCORES = {
    10: 1.00,
    14: 0.95,
    11: 0.85,
    15: 0.80,
    9: 0.65,
    13: 0.60,
    12: 0.50,
    16: 0.40,
}
OFF_PEAK_TIME_SCORE = 0.20

DAY_OF_WEEK_SCORES = {
    0: 0.60,  # Monday
    1: 1.00,
    2: 1.00,
    3: 0.90,
    4: 0.50,  # Friday
}
WEEKEND_DAY_SCORE = 0.20

DURATION_SCORES = {30: 0.80, 45: 0.85, 60: 1.00, 90: 0.60, 120: 0.40}
DEFAULT_DURATION_SCORE = 0.50

HIGH_PRODUCTIVITY_MONTHS = frozenset({3, 4, 5, 9, 10, 11})

PREFERENCE_BLEND = {
    "time_of_day": 0.55,
    "day_of_week": 0.30,
    "season": 0.05,
    "attendees": 0.05,
    "duration": 0.05,
}

SCORE_PRECISION = 6


def time_of_day_score(local_start: datetime) -> float:
    return TIME_OF_DAY_SCORES.get(local_start.hour, OFF_PEAK_TIME_SCORE)


def day_of_week_score(local_start: datetime) -> float:
    return DAY_OF_WEEK_SCORES.get(local_start.weekday(), WEEKEND_DAY_SCORE)


def seasonal_score(local_start: datetime) -> float:
    return 1.0 if local_start.month in HIGH_PRODUCTIVITY_MONTHS else 0.5


def attendee_count_score(attendee_count: int) -> float:
    # Two-person meetings are easiest to hold; each extra attendee costs 10%.
    return max(0.0, min(1.0, 1.0 - (attendee_count - 2) * 0.1))


def duration_score(duration_minutes: int) -> float:
    return DURATION_SCORES.get(duration_minutes, DEFAULT_DURATION_SCORE)


def _time_of_day_label(hour: int) -> str:
    if 9 <= hour < 11:
        return "Morning productivity peak"
    if hour == 11:
        return "Mid-morning slot"
    if hour == 12:
        return "Lunch hour"
    if hour == 13:
        return "After lunch"
    if 14 <= hour < 16:
        return "Afternoon slot"
    if hour >= 16:
        return "Late day slot"
    return "Early start"


def build_reason(available_count: int, total_count: int, local_start: datetime) -> str:
    if available_count == total_count:
        return f"All participants available - {_time_of_day_label(local_start.hour)}"
    return (
        f"{available_count}/{total_count} participants available - "
        f"{_time_of_day_label(local_start.hour)}"
    )


def build_engine_config(settings: Settings) -> EngineConfig:
    config = EngineConfig(
        availability_weight=settings.scoring_availability_weight,
        preference_weight=settings.scoring_preference_weight,
        jitter_amplitude=settings.scoring_jitter_amplitude,
        max_slots_per_day=settings.selection_max_slots_per_day,
        fetch_max_workers=settings.calendar_fetch_max_workers,
        fetch_timeout_seconds=settings.calendar_fetch_timeout_seconds,
    )
    validate_engine_config(config)
    return config


class SlotScorer:
    """Assigns a reproducible score and explanation to each candidate slot."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        if config is None:
            config = build_engine_config(settings or get_settings())
        else:
            validate_engine_config(config)
        self._config = config

    @property
    def config(self) -> EngineConfig:
        return self._config

    def request_seed(self, request: SchedulingRequest) -> int:
        if request.seed is not None:
            return request.seed
        return derive_request_seed(
            request.sorted_attendees,
            request.window_start,
            request.window_end,
            request.duration_minutes,
        )

    def preference(self, local_start: datetime, request: SchedulingRequest) -> float:
        components = {
            "time_of_day": time_of_day_score(local_start),
            "day_of_week": day_of_week_score(local_start),
            "season": seasonal_score(local_start),
            "attendees": attendee_count_score(len(request.attendees)),
            "duration": duration_score(request.duration_minutes),
        }
        return sum(PREFERENCE_BLEND[name] * value for name, value in components.items())

    def jitter(self, slot_start: datetime, request_seed: int) -> float:
        amplitude = self._config.jitter_amplitude
        if amplitude == 0.0:
            return 0.0
        generator = random.Random(derive_seed(request_seed, slot_start))
        return (generator.random() - 0.5) * amplitude

    def score(
        self,
        candidate: CandidateSlot,
        request: SchedulingRequest,
        request_seed: Optional[int] = None,
    ) -> ScoredSlot:
        tz = pytz.timezone(request.time_zone)
        local_start = candidate.start.astimezone(tz)
        local_end = candidate.end.astimezone(tz)
        total = len(request.attendees)
        available_count = len(candidate.available_participants)
        ratio = available_count / total if total else 0.0

        seed = request_seed if request_seed is not None else self.request_seed(request)
        raw = (
            self._config.availability_weight * ratio
            + self._config.preference_weight * self.preference(local_start, request)
            + self.jitter(candidate.start, seed)
        )
        value = round(max(0.0, min(1.0, raw)), SCORE_PRECISION)

        return ScoredSlot(
            start=local_start,
            end=local_end,
            available_participants=candidate.available_participants,
            unavailable_participants=frozenset(request.attendees) - candidate.available_participants,
            score=value,
            reason=build_reason(available_count, total, local_start),
        )

    def score_all(
        self,
        candidates: list[CandidateSlot],
        request: SchedulingRequest,
    ) -> list[ScoredSlot]:
        seed = self.request_seed(request)
        return [self.score(candidate, request, request_seed=seed) for candidate in candidates]
