"""In-memory per-user history of availability searches."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Callable, Optional
from uuid import uuid4

from availability_engine.domain.models import SchedulingRequest, SchedulingResult
from availability_engine.utils.config import Settings, get_settings
from availability_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)


@dataclass(frozen=True)
class SchedulingHistoryEntry:
    entry_id: str
    user_id: str
    request: SchedulingRequest
    result: SchedulingResult
    created_at: datetime


class InMemorySchedulingHistoryRepository:
    """Keeps the newest searches per user; nothing survives a restart."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._entries: dict[str, list[SchedulingHistoryEntry]] = defaultdict(list)
        self._lock = RLock()

    def store(
        self,
        user_id: str,
        request: SchedulingRequest,
        result: SchedulingResult,
    ) -> SchedulingHistoryEntry:
        entry = SchedulingHistoryEntry(
            entry_id=uuid4().hex,
            user_id=user_id,
            request=request,
            result=result,
            created_at=self._clock(),
        )
        with self._lock:
            entries = self._entries[user_id]
            entries.append(entry)
            overflow = len(entries) - self._settings.history_max_entries_per_user
            if overflow > 0:
                del entries[:overflow]
        log_event(
            logger,
            logging.INFO,
            "Stored scheduling history",
            user_id=user_id,
            slots=len(result.slots),
        )
        return entry

    def list_entries(
        self,
        user_id: str,
        lookback_days: Optional[int] = None,
    ) -> list[SchedulingHistoryEntry]:
        """Entries newer than the lookback cutoff, newest first."""
        days = lookback_days if lookback_days is not None else self._settings.history_lookback_days
        cutoff = self._clock() - timedelta(days=days)
        with self._lock:
            entries = list(self._entries.get(user_id, ()))
        return [entry for entry in reversed(entries) if entry.created_at >= cutoff]

    def latest(self, user_id: str) -> Optional[SchedulingHistoryEntry]:
        entries = self.list_entries(user_id)
        return entries[0] if entries else None

    def count(self, user_id: str) -> int:
        with self._lock:
            return len(self._entries.get(user_id, ()))

    def clear(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)
