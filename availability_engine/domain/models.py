"""Domain models for multi-participant availability resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from availability_engine.domain.intervals import TimeInterval


WEEKDAYS = frozenset({0, 1, 2, 3, 4})


@dataclass(frozen=True)
class SchedulingRequest:
    attendees: frozenset[str]
    duration_minutes: int
    window_start: datetime
    window_end: datetime
    working_days: frozenset[int] = WEEKDAYS
    working_hours_start: time = time(9, 0)
    working_hours_end: time = time(17, 0)
    alignment_minutes: int = 15
    max_results: int = 20
    min_participants_available: Optional[int] = None
    max_slots_per_day: Optional[int] = None
    time_zone: str = "UTC"
    seed: Optional[int] = None

    @property
    def sorted_attendees(self) -> list[str]:
        return sorted(self.attendees)

    @property
    def required_participants(self) -> int:
        if self.min_participants_available is None:
            return len(self.attendees)
        return self.min_participants_available


@dataclass(frozen=True)
class CandidateTime:
    """Aligned slot proposal emitted by the window generator."""

    day: date
    start: datetime
    end: datetime


@dataclass(frozen=True)
class CandidateSlot:
    start: datetime
    end: datetime
    available_participants: frozenset[str]
    unavailable_participants: frozenset[str] = frozenset()

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)


@dataclass(frozen=True)
class ScoredSlot:
    start: datetime
    end: datetime
    available_participants: frozenset[str]
    unavailable_participants: frozenset[str]
    score: float
    reason: str
    is_recommended: bool = False

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    @property
    def day(self) -> date:
        return self.start.date()


class SchedulingError(str, Enum):
    INVALID_REQUEST = "invalid_request"
    NO_AVAILABILITY = "no_availability"
    SOURCE_UNAVAILABLE = "source_unavailable"


@dataclass(frozen=True)
class SchedulingResult:
    slots: tuple[ScoredSlot, ...] = ()
    error: Optional[SchedulingError] = None
    message: str = ""
    degraded_participants: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls,
        slots: list[ScoredSlot],
        degraded_participants: tuple[str, ...] = (),
    ) -> SchedulingResult:
        return cls(
            slots=tuple(slots),
            message=f"Found {len(slots)} available slot(s)",
            degraded_participants=degraded_participants,
        )

    @classmethod
    def failure(
        cls,
        error: SchedulingError,
        message: str,
        degraded_participants: tuple[str, ...] = (),
    ) -> SchedulingResult:
        return cls(
            slots=(),
            error=error,
            message=message,
            degraded_participants=degraded_participants,
        )
