"""Time-limited cache in front of a Calendar Source."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Callable, Mapping, Optional, Sequence

from availability_engine.domain.intervals import TimeInterval
from availability_engine.repository.calendar_source import CalendarSource
from availability_engine.utils.config import Settings, get_settings
from availability_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)


@dataclass(frozen=True)
class _CacheEntry:
    intervals: tuple[TimeInterval, ...]
    expires_at: datetime


class CachingCalendarSource:
    """Caches busy intervals per participant and window.

    Only participants the wrapped source returned data for are cached;
    missing participants and failed lookups are asked for again next time.
    """

    def __init__(
        self,
        inner: CalendarSource,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        if self._settings.calendar_cache_ttl_seconds <= 0:
            raise ValueError("calendar_cache_ttl_seconds must be > 0")
        self._inner = inner
        self._ttl = timedelta(seconds=self._settings.calendar_cache_ttl_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._entries: dict[tuple[str, datetime, datetime], _CacheEntry] = {}
        self._lock = RLock()
        self._hits = 0
        self._misses = 0

    @property
    def inner(self) -> CalendarSource:
        return self._inner

    @property
    def ttl_seconds(self) -> float:
        return self._ttl.total_seconds()

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def get_busy_intervals(
        self,
        participant_ids: set[str],
        window_start: datetime,
        window_end: datetime,
    ) -> dict[str, list[TimeInterval]]:
        now = self._clock()
        result: dict[str, list[TimeInterval]] = {}
        pending: set[str] = set()
        with self._lock:
            for participant_id in participant_ids:
                entry = self._entries.get((participant_id, window_start, window_end))
                if entry is not None and entry.expires_at > now:
                    result[participant_id] = list(entry.intervals)
                else:
                    pending.add(participant_id)
            self._hits += len(result)
            self._misses += len(pending)

        if pending:
            fetched = self._inner.get_busy_intervals(pending, window_start, window_end)
            self._store(fetched, window_start, window_end, now + self._ttl)
            for participant_id, intervals in fetched.items():
                if participant_id in pending:
                    result[participant_id] = list(intervals)

        log_event(
            logger,
            logging.DEBUG,
            "Cached busy lookup",
            requested=len(participant_ids),
            hits=len(participant_ids) - len(pending),
            fetched=len(pending),
        )
        return result

    def _store(
        self,
        fetched: Mapping[str, Sequence[TimeInterval]],
        window_start: datetime,
        window_end: datetime,
        expires_at: datetime,
    ) -> None:
        with self._lock:
            for participant_id, intervals in fetched.items():
                self._entries[(participant_id, window_start, window_end)] = _CacheEntry(
                    intervals=tuple(intervals),
                    expires_at=expires_at,
                )

    def invalidate(self, participant_id: str) -> None:
        with self._lock:
            for key in [key for key in self._entries if key[0] == participant_id]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        log_event(logger, logging.INFO, "Calendar cache cleared")
