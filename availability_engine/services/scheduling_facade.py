"""End-to-end availability resolution for one scheduling request."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from availability_engine.domain.constraints import (
    EngineConfig,
    SchedulingValidationError,
    validate_scheduling_request,
)
from availability_engine.domain.intervals import ParticipantBusySet, TimeInterval
from availability_engine.domain.models import SchedulingError, SchedulingRequest, SchedulingResult
from availability_engine.repository.calendar_source import CalendarSource, CalendarSourceError
from availability_engine.services.availability_resolver import AvailabilityResolver
from availability_engine.services.slot_scorer import SlotScorer, build_engine_config
from availability_engine.services.slot_selector import SlotSelector
from availability_engine.services.window_generator import WorkingWindowGenerator
from availability_engine.utils.config import Settings, get_settings
from availability_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)


@dataclass(frozen=True)
class BusySetFetch:
    busy_sets: tuple[ParticipantBusySet, ...]
    failed_participants: tuple[str, ...]
    missing_participants: tuple[str, ...]

    @property
    def degraded_participants(self) -> tuple[str, ...]:
        return tuple(sorted(set(self.failed_participants) | set(self.missing_participants)))


class SchedulingFacade:
    """Validate -> fetch busy-sets -> generate -> resolve -> score -> select.

    Holds configuration only; every call builds its own busy-sets and slots,
    so one facade can serve concurrent requests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        config: Optional[EngineConfig] = None,
        generator: Optional[WorkingWindowGenerator] = None,
        resolver: Optional[AvailabilityResolver] = None,
        scorer: Optional[SlotScorer] = None,
        selector: Optional[SlotSelector] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._config = config or build_engine_config(self._settings)
        self._generator = generator or WorkingWindowGenerator()
        self._resolver = resolver or AvailabilityResolver()
        self._scorer = scorer or SlotScorer(config=self._config)
        self._selector = selector or SlotSelector(config=self._config)

    def fetch_busy_sets(
        self,
        request: SchedulingRequest,
        calendar_source: CalendarSource,
    ) -> BusySetFetch:
        attendees = request.sorted_attendees
        failed: list[str] = []
        try:
            raw = dict(self._fetch_batch(attendees, request, calendar_source))
        except (CalendarSourceError, FuturesTimeoutError) as exc:
            log_event(
                logger,
                logging.WARNING,
                "Batched busy lookup failed, falling back to per-attendee lookups",
                attendees=len(attendees),
                error=repr(exc),
            )
            raw, failed = self._fetch_individually(attendees, request, calendar_source)

        busy_sets: list[ParticipantBusySet] = []
        missing: list[str] = []
        for participant_id in attendees:
            intervals = raw.get(participant_id)
            if intervals is None:
                if participant_id not in failed:
                    missing.append(participant_id)
                busy_sets.append(ParticipantBusySet.empty(participant_id))
                continue
            busy_sets.append(ParticipantBusySet.from_intervals(participant_id, intervals))

        if missing:
            log_event(
                logger,
                logging.INFO,
                "No calendar data for participants, treating as free",
                participants=missing,
            )
        return BusySetFetch(
            busy_sets=tuple(busy_sets),
            failed_participants=tuple(failed),
            missing_participants=tuple(missing),
        )

    def _fetch_batch(
        self,
        attendees: list[str],
        request: SchedulingRequest,
        calendar_source: CalendarSource,
    ) -> Mapping[str, Sequence[TimeInterval]]:
        """One lookup for every attendee, bounded by the fetch timeout."""
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(
                calendar_source.get_busy_intervals,
                set(attendees),
                request.window_start,
                request.window_end,
            )
            return future.result(timeout=self._config.fetch_timeout_seconds)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _fetch_individually(
        self,
        attendees: list[str],
        request: SchedulingRequest,
        calendar_source: CalendarSource,
    ) -> tuple[dict[str, list[TimeInterval]], list[str]]:
        def lookup(participant_id: str) -> list[TimeInterval]:
            response = calendar_source.get_busy_intervals(
                {participant_id},
                request.window_start,
                request.window_end,
            )
            return list(response.get(participant_id, ()))

        raw: dict[str, list[TimeInterval]] = {}
        failed: list[str] = []
        workers = min(self._config.fetch_max_workers, len(attendees))
        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            futures = {
                participant_id: executor.submit(lookup, participant_id)
                for participant_id in attendees
            }
            # Collected in attendee order, not completion order.
            for participant_id in attendees:
                try:
                    raw[participant_id] = futures[participant_id].result(
                        timeout=self._config.fetch_timeout_seconds
                    )
                except (CalendarSourceError, FuturesTimeoutError) as exc:
                    log_event(
                        logger,
                        logging.WARNING,
                        "Busy lookup failed, treating participant as free",
                        participant=participant_id,
                        error=repr(exc),
                    )
                    failed.append(participant_id)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return raw, failed

    def find_available_slots(
        self,
        request: SchedulingRequest,
        calendar_source: CalendarSource,
    ) -> SchedulingResult:
        try:
            validate_scheduling_request(request)
        except SchedulingValidationError as exc:
            log_event(logger, logging.INFO, "Scheduling request rejected", reason=exc)
            return SchedulingResult.failure(SchedulingError.INVALID_REQUEST, str(exc))

        fetch = self.fetch_busy_sets(request, calendar_source)
        if len(fetch.failed_participants) == len(request.attendees):
            log_event(
                logger,
                logging.WARNING,
                "Calendar source unavailable for every attendee",
                attendees=len(request.attendees),
            )
            return SchedulingResult.failure(
                SchedulingError.SOURCE_UNAVAILABLE,
                "Calendar information could not be retrieved for any attendee",
                degraded_participants=fetch.degraded_participants,
            )

        candidates = self._generator.generate(request)
        resolved = self._resolver.resolve(
            candidates,
            fetch.busy_sets,
            request.required_participants,
        )
        scored = self._scorer.score_all(resolved, request)
        selected = self._selector.select(scored, request)

        log_event(
            logger,
            logging.INFO,
            "Availability resolution completed",
            attendees=len(request.attendees),
            duration=request.duration_minutes,
            resolved=len(resolved),
            selected=len(selected),
            degraded=len(fetch.degraded_participants),
        )

        if not selected:
            return SchedulingResult.failure(
                SchedulingError.NO_AVAILABILITY,
                "No time slots satisfy the requested attendees and constraints",
                degraded_participants=fetch.degraded_participants,
            )
        return SchedulingResult.success(
            selected,
            degraded_participants=fetch.degraded_participants,
        )
