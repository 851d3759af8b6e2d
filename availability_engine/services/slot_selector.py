"""Ranking, overlap removal and per-day capping of scored slots."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional

from availability_engine.domain.constraints import EngineConfig
from availability_engine.domain.models import ScoredSlot, SchedulingRequest
from availability_engine.services.slot_scorer import build_engine_config
from availability_engine.utils.config import Settings, get_settings


def rank_key(slot: ScoredSlot) -> tuple[float, object]:
    return (-slot.score, slot.start)


def select_for_day(slots: Iterable[ScoredSlot], cap: int) -> list[ScoredSlot]:
    """Best non-overlapping slots of one day, top pick flagged as recommended."""
    chosen: list[ScoredSlot] = []
    for slot in sorted(slots, key=rank_key):
        if len(chosen) >= cap:
            break
        if any(slot.interval.overlaps(kept.interval) for kept in chosen):
            continue
        chosen.append(slot)

    if chosen:
        chosen[0] = replace(chosen[0], is_recommended=True)
    return chosen


class SlotSelector:
    """Turns scored slots into the ordered list presented to the caller."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._config = config or build_engine_config(settings or get_settings())

    def day_cap(self, request: SchedulingRequest) -> int:
        if request.max_slots_per_day is not None:
            return request.max_slots_per_day
        return self._config.max_slots_per_day

    def select(
        self,
        scored_slots: Iterable[ScoredSlot],
        request: SchedulingRequest,
    ) -> list[ScoredSlot]:
        slots_by_day: dict[date, list[ScoredSlot]] = defaultdict(list)
        for slot in scored_slots:
            slots_by_day[slot.day].append(slot)
        if not slots_by_day:
            return []

        cap = self.day_cap(request)
        selected: list[ScoredSlot] = []
        for day in sorted(slots_by_day):
            selected.extend(select_for_day(slots_by_day[day], cap))

        selected.sort(key=lambda slot: (slot.start, -slot.score))
        return selected[: request.max_results]
