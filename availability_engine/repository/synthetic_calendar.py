"""Deterministic synthetic calendars for demos and tests.

Every participant-day is generated from its own seed, so the same participant
always has the same meetings on the same date no matter which window is asked
for or which process asks.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

import pytz

from availability_engine.domain.intervals import TimeInterval
from availability_engine.utils.config import Settings, get_settings
from availability_engine.utils.logger import get_logger, log_event
from availability_engine.utils.seeding import derive_seed


logger = get_logger(__name__)

MIN_BUSYNESS = 0.1
MAX_BUSYNESS = 0.9
MIN_EVENTS_PER_DAY = 1
MAX_EVENTS_PER_DAY = 8
EVENT_DURATIONS_MINUTES = (30, 45, 60, 90, 120)
PLACEMENT_ATTEMPTS = 10
DAY_START_HOUR = 9
DAY_END_HOUR = 17


class SyntheticCalendarSource:
    """Calendar Source producing seeded, non-overlapping working-day meetings."""

    def __init__(
        self,
        busyness_level: Optional[float] = None,
        participants: Optional[Iterable[str]] = None,
        time_zone: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        level = (
            busyness_level
            if busyness_level is not None
            else self._settings.synthetic_busyness_level
        )
        self._busyness_level = max(MIN_BUSYNESS, min(MAX_BUSYNESS, level))
        self._participants = frozenset(participants) if participants is not None else None
        self._tz = pytz.timezone(time_zone or self._settings.default_time_zone)

    @property
    def busyness_level(self) -> float:
        return self._busyness_level

    @property
    def events_per_day(self) -> int:
        spread = MAX_EVENTS_PER_DAY - MIN_EVENTS_PER_DAY
        return int(round(MIN_EVENTS_PER_DAY + spread * self._busyness_level))

    def known_participants(self) -> list[str]:
        if self._participants is None:
            return []
        return sorted(self._participants)

    def events_for_day(self, participant_id: str, day: date) -> list[TimeInterval]:
        if day.weekday() >= 5:
            return []

        generator = random.Random(derive_seed(participant_id, day, self._busyness_level))
        placed: list[TimeInterval] = []
        for _ in range(self.events_per_day):
            for _ in range(PLACEMENT_ATTEMPTS):
                hour = generator.randrange(DAY_START_HOUR, DAY_END_HOUR)
                minute = generator.randrange(0, 4) * 15
                duration = EVENT_DURATIONS_MINUTES[generator.randrange(len(EVENT_DURATIONS_MINUTES))]
                start = self._tz.localize(datetime.combine(day, time(hour, minute)))
                candidate = TimeInterval(start=start, end=start + timedelta(minutes=duration))
                if any(candidate.overlaps(existing) for existing in placed):
                    continue
                placed.append(candidate)
                break
        return sorted(placed, key=lambda interval: interval.start)

    def get_busy_intervals(
        self,
        participant_ids: set[str],
        window_start: datetime,
        window_end: datetime,
    ) -> dict[str, list[TimeInterval]]:
        first_day = window_start.astimezone(self._tz).date()
        last_day = window_end.astimezone(self._tz).date()

        result: dict[str, list[TimeInterval]] = {}
        for participant_id in sorted(participant_ids):
            if self._participants is not None and participant_id not in self._participants:
                continue
            intervals: list[TimeInterval] = []
            day = first_day
            while day <= last_day:
                intervals.extend(
                    interval
                    for interval in self.events_for_day(participant_id, day)
                    if interval.start < window_end and window_start < interval.end
                )
                day += timedelta(days=1)
            result[participant_id] = intervals

        log_event(
            logger,
            logging.INFO,
            "Synthetic calendars generated",
            participants=len(result),
            busyness=f"{self._busyness_level:.2f}",
            window=f"{window_start.isoformat()}..{window_end.isoformat()}",
        )
        return result
