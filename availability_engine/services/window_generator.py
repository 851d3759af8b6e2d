"""Candidate slot enumeration inside working days and hours."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Iterator

import pytz

from availability_engine.domain.models import CandidateTime, SchedulingRequest


def localize_wall_time(tz: pytz.BaseTzInfo, wall_time: datetime) -> datetime | None:
    """Attach ``tz`` to a naive wall-clock time.

    Times skipped by a spring-forward shift do not exist and yield ``None``.
    Times repeated by a fall-back shift resolve to their first occurrence.
    """
    try:
        return tz.localize(wall_time, is_dst=None)
    except pytz.NonExistentTimeError:
        return None
    except pytz.AmbiguousTimeError:
        return tz.localize(wall_time, is_dst=True)


class CandidateStream:
    """Lazy, restartable view over the candidates of one request.

    Each iteration walks the window again one day at a time, so callers can
    scan it repeatedly without holding every slot in memory.
    """

    def __init__(self, generator: WorkingWindowGenerator, request: SchedulingRequest) -> None:
        self._generator = generator
        self._request = request

    def __iter__(self) -> Iterator[CandidateTime]:
        return self._generator.iter_candidates(self._request)


class WorkingWindowGenerator:
    """Enumerates aligned candidate start times for a scheduling request."""

    def generate(self, request: SchedulingRequest) -> CandidateStream:
        return CandidateStream(self, request)

    def iter_candidates(self, request: SchedulingRequest) -> Iterator[CandidateTime]:
        tz = pytz.timezone(request.time_zone)
        first_day = request.window_start.astimezone(tz).date()
        last_day = request.window_end.astimezone(tz).date()

        day = first_day
        while day <= last_day:
            if day.weekday() in request.working_days:
                yield from self._iter_day(day, tz, request)
            day += timedelta(days=1)

    def working_span(
        self,
        day: date,
        tz: pytz.BaseTzInfo,
        request: SchedulingRequest,
    ) -> tuple[datetime, datetime] | None:
        """Working hours of ``day`` clipped to the request window."""
        work_start = tz.localize(datetime.combine(day, request.working_hours_start))
        work_end = tz.localize(datetime.combine(day, request.working_hours_end))
        span_start = max(work_start, request.window_start)
        span_end = min(work_end, request.window_end)
        if span_start >= span_end:
            return None
        return span_start, span_end

    def _iter_day(
        self,
        day: date,
        tz: pytz.BaseTzInfo,
        request: SchedulingRequest,
    ) -> Iterator[CandidateTime]:
        span = self.working_span(day, tz, request)
        if span is None:
            return
        span_start, span_end = span

        midnight = datetime.combine(day, time.min)
        local_start = span_start.astimezone(tz).replace(tzinfo=None)
        elapsed_minutes = math.ceil((local_start - midnight).total_seconds() / 60)
        alignment = request.alignment_minutes
        first_offset = math.ceil(elapsed_minutes / alignment) * alignment

        cursor = midnight + timedelta(minutes=first_offset)
        last_wall_time = span_end.astimezone(tz).replace(tzinfo=None)
        step = timedelta(minutes=alignment)
        duration = timedelta(minutes=request.duration_minutes)
        while cursor < last_wall_time:
            start = localize_wall_time(tz, cursor)
            cursor += step
            if start is None or start < span_start:
                continue
            # Elapsed time, not wall-clock time.
            end = tz.normalize(start + duration)
            if end > span_end:
                return
            yield CandidateTime(day=day, start=start, end=end)
