"""Calendar Source contract and the in-memory implementation."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from availability_engine.domain.intervals import TimeInterval, merge_intervals
from availability_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

# Free/busy view codes: 0 free, 1 tentative, 2 busy, 3 out of office,
# 4 working elsewhere.
DEFAULT_BUSY_STATUSES = "23"


class CalendarSourceError(Exception):
    """Raised when busy intervals cannot be retrieved for some participants."""

    def __init__(self, message: str, participant_ids: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.participant_ids = tuple(sorted(participant_ids))


class CalendarSource(Protocol):
    def get_busy_intervals(
        self,
        participant_ids: set[str],
        window_start: datetime,
        window_end: datetime,
    ) -> Mapping[str, Sequence[TimeInterval]]:
        ...


def parse_availability_view(
    view: str,
    view_start: datetime,
    interval_minutes: int = 15,
    busy_statuses: str = DEFAULT_BUSY_STATUSES,
) -> tuple[TimeInterval, ...]:
    """Decode a provider free/busy view string into merged busy intervals.

    Each character covers ``interval_minutes`` starting at ``view_start``.
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be > 0")

    step = timedelta(minutes=interval_minutes)
    busy: list[TimeInterval] = []
    cursor = view_start
    for status in view:
        if status in busy_statuses:
            busy.append(TimeInterval(start=cursor, end=cursor + step))
        cursor += step
    return merge_intervals(busy)


class InMemoryCalendarSource:
    """Serves fixed busy intervals, optionally failing for chosen participants."""

    def __init__(
        self,
        busy_by_participant: Optional[Mapping[str, Iterable[TimeInterval]]] = None,
        failing_participants: Iterable[str] = (),
    ) -> None:
        self._busy = {
            participant_id: tuple(intervals)
            for participant_id, intervals in (busy_by_participant or {}).items()
        }
        self._failing = frozenset(failing_participants)

    def get_busy_intervals(
        self,
        participant_ids: set[str],
        window_start: datetime,
        window_end: datetime,
    ) -> dict[str, list[TimeInterval]]:
        failing = self._failing.intersection(participant_ids)
        if failing:
            raise CalendarSourceError(
                f"calendar lookup failed for {len(failing)} participant(s)",
                participant_ids=failing,
            )

        result: dict[str, list[TimeInterval]] = {}
        for participant_id in sorted(participant_ids):
            intervals = self._busy.get(participant_id)
            if intervals is None:
                continue
            result[participant_id] = [
                interval
                for interval in intervals
                if interval.start < window_end and window_start < interval.end
            ]
        log_event(
            logger,
            logging.DEBUG,
            "In-memory busy lookup",
            requested=len(participant_ids),
            found=len(result),
        )
        return result
