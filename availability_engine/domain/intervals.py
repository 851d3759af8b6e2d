"""Half-open time intervals and merged per-participant busy-sets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable


class InvalidIntervalError(ValueError):
    """Raised when an interval is constructed with start >= end."""


def intervals_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """Half-open overlap test: [a) and [b) share at least one instant."""
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class TimeInterval:
    """Immutable half-open interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise InvalidIntervalError(
                f"interval start must precede end (start={self.start.isoformat()}, "
                f"end={self.end.isoformat()})"
            )

    def overlaps(self, other: TimeInterval) -> bool:
        return intervals_overlap(self.start, self.end, other.start, other.end)

    def touches_or_overlaps(self, other: TimeInterval) -> bool:
        return self.start <= other.end and other.start <= self.end


def merge_intervals(intervals: Iterable[TimeInterval]) -> tuple[TimeInterval, ...]:
    """Coalesce overlapping and adjacent intervals, ordered by start."""
    ordered = sorted(intervals, key=lambda interval: (interval.start, interval.end))
    if len(ordered) <= 1:
        return tuple(ordered)

    merged: list[TimeInterval] = []
    current = ordered[0]
    for following in ordered[1:]:
        if following.touches_or_overlaps(current):
            if following.end > current.end:
                current = TimeInterval(start=current.start, end=following.end)
            continue
        merged.append(current)
        current = following
    merged.append(current)
    return tuple(merged)


@dataclass(frozen=True)
class ParticipantBusySet:
    """Merged, start-ordered busy intervals for one participant.

    Construct through ``from_intervals`` so that the no-overlap/no-adjacency
    invariant holds; the resolver relies on it for its binary searches.
    """

    participant_id: str
    busy: tuple[TimeInterval, ...] = ()

    @classmethod
    def from_intervals(
        cls,
        participant_id: str,
        intervals: Iterable[TimeInterval],
    ) -> ParticipantBusySet:
        return cls(participant_id=participant_id, busy=merge_intervals(intervals))

    @classmethod
    def empty(cls, participant_id: str) -> ParticipantBusySet:
        return cls(participant_id=participant_id, busy=())

    def with_interval(self, interval: TimeInterval) -> ParticipantBusySet:
        return ParticipantBusySet.from_intervals(self.participant_id, (*self.busy, interval))
