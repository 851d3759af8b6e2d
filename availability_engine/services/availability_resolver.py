"""Interval-set intersection of candidate slots against participant busy-sets."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

import numpy as np

from availability_engine.domain.intervals import ParticipantBusySet, intervals_overlap
from availability_engine.domain.models import CandidateSlot, CandidateTime
from availability_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _to_micros(value: datetime) -> int:
    return (value - _EPOCH) // _MICROSECOND


def is_participant_available(candidate: CandidateTime | CandidateSlot, busy_set: ParticipantBusySet) -> bool:
    """Scalar form of the conflict test, one busy interval at a time."""
    return not any(
        intervals_overlap(candidate.start, candidate.end, busy.start, busy.end)
        for busy in busy_set.busy
    )


def free_mask(
    candidate_starts: np.ndarray,
    candidate_ends: np.ndarray,
    busy_set: ParticipantBusySet,
) -> np.ndarray:
    """Boolean mask of candidates that do not conflict with ``busy_set``.

    Busy intervals are merged and sorted, so both their starts and their ends
    increase monotonically. For each candidate only the last busy interval
    starting before the candidate ends can still be running when it starts.
    """
    if not busy_set.busy:
        return np.ones(candidate_starts.shape, dtype=bool)

    busy_starts = np.fromiter(
        (_to_micros(busy.start) for busy in busy_set.busy),
        dtype=np.int64,
        count=len(busy_set.busy),
    )
    busy_ends = np.fromiter(
        (_to_micros(busy.end) for busy in busy_set.busy),
        dtype=np.int64,
        count=len(busy_set.busy),
    )

    # busy.start < candidate.end
    preceding = np.searchsorted(busy_starts, candidate_ends, side="left")
    has_preceding = preceding > 0
    last_index = np.where(has_preceding, preceding - 1, 0)
    # candidate.start < busy.end
    conflicts = has_preceding & (busy_ends[last_index] > candidate_starts)
    return ~conflicts


class AvailabilityResolver:
    """Filters generated candidates down to slots enough participants can attend."""

    def resolve(
        self,
        candidates: Iterable[CandidateTime],
        busy_sets: Sequence[ParticipantBusySet],
        min_participants_available: int,
    ) -> list[CandidateSlot]:
        candidate_list = list(candidates)
        if not candidate_list or not busy_sets:
            return []

        required = max(1, min_participants_available)
        participant_ids = [busy_set.participant_id for busy_set in busy_sets]

        candidate_starts = np.fromiter(
            (_to_micros(candidate.start) for candidate in candidate_list),
            dtype=np.int64,
            count=len(candidate_list),
        )
        candidate_ends = np.fromiter(
            (_to_micros(candidate.end) for candidate in candidate_list),
            dtype=np.int64,
            count=len(candidate_list),
        )

        availability = np.vstack(
            [free_mask(candidate_starts, candidate_ends, busy_set) for busy_set in busy_sets]
        )
        available_counts = availability.sum(axis=0)
        retained_indexes = np.flatnonzero(available_counts >= required)

        resolved: list[CandidateSlot] = []
        for index in retained_indexes:
            column = availability[:, index]
            available = frozenset(
                participant_id
                for participant_id, is_free in zip(participant_ids, column)
                if is_free
            )
            candidate = candidate_list[index]
            resolved.append(
                CandidateSlot(
                    start=candidate.start,
                    end=candidate.end,
                    available_participants=available,
                    unavailable_participants=frozenset(participant_ids) - available,
                )
            )

        log_event(
            logger,
            logging.DEBUG,
            "Availability resolved",
            candidates=len(candidate_list),
            participants=len(participant_ids),
            required=required,
            retained=len(resolved),
        )
        return resolved
