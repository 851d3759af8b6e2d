"""Search -> history -> pick-slot flow used by the HTTP layer."""

from __future__ import annotations

import logging
from typing import Optional

from availability_engine.domain.models import ScoredSlot, SchedulingRequest, SchedulingResult
from availability_engine.repository.calendar_source import CalendarSource
from availability_engine.repository.history_repository import (
    InMemorySchedulingHistoryRepository,
    SchedulingHistoryEntry,
)
from availability_engine.repository.synthetic_calendar import SyntheticCalendarSource
from availability_engine.services.scheduling_facade import SchedulingFacade
from availability_engine.utils.config import Settings, get_settings
from availability_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)


class WorkflowValidationError(Exception):
    """Raised when workflow inputs are invalid."""


class HistoryEntryNotFoundError(WorkflowValidationError):
    """Raised when a slot is picked before any search was recorded."""


class SlotSelectionError(WorkflowValidationError):
    """Raised when the picked slot number is outside the last result."""


class SchedulingWorkflowService:
    """Runs searches for a user and remembers them for follow-up picks.

    Session state lives in the history repository handed in by the caller;
    the facade itself stays stateless.
    """

    def __init__(
        self,
        facade: Optional[SchedulingFacade] = None,
        history_repository: Optional[InMemorySchedulingHistoryRepository] = None,
        calendar_source: Optional[CalendarSource] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._facade = facade or SchedulingFacade(settings=self._settings)
        self._history = history_repository or InMemorySchedulingHistoryRepository(
            settings=self._settings
        )
        self._calendar_source = calendar_source or SyntheticCalendarSource(settings=self._settings)

    def find_slots(
        self,
        request: SchedulingRequest,
        *,
        user_id: Optional[str] = None,
        calendar_source: Optional[CalendarSource] = None,
    ) -> SchedulingResult:
        source = calendar_source or self._calendar_source
        result = self._facade.find_available_slots(request, source)
        if user_id and result.error is None:
            self._history.store(user_id, request, result)
        return result

    def history(
        self,
        user_id: str,
        lookback_days: Optional[int] = None,
    ) -> list[SchedulingHistoryEntry]:
        if not user_id.strip():
            raise WorkflowValidationError("user_id must be non-empty")
        if lookback_days is not None and lookback_days <= 0:
            raise WorkflowValidationError("lookback_days must be > 0")
        return self._history.list_entries(user_id, lookback_days=lookback_days)

    def select_slot(self, user_id: str, slot_number: int) -> ScoredSlot:
        """Return slot ``slot_number`` (1-based) of the user's latest search."""
        entry = self._history.latest(user_id)
        if entry is None:
            raise HistoryEntryNotFoundError(
                f"No recent availability search found for user '{user_id}'"
            )
        slots = entry.result.slots
        if not 1 <= slot_number <= len(slots):
            raise SlotSelectionError(
                f"slot_number must be between 1 and {len(slots)}"
            )
        slot = slots[slot_number - 1]
        log_event(
            logger,
            logging.INFO,
            "Slot selected",
            user_id=user_id,
            slot_number=slot_number,
            start=slot.start.isoformat(),
        )
        return slot
