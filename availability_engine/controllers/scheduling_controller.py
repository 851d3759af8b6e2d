"""HTTP controller layer for availability search."""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator

from availability_engine.controllers.dependencies import get_workflow_service
from availability_engine.domain.constraints import MAX_RESULTS_LIMIT
from availability_engine.domain.intervals import TimeInterval
from availability_engine.domain.models import (
    WEEKDAYS,
    ScoredSlot,
    SchedulingError,
    SchedulingRequest,
    SchedulingResult,
)
from availability_engine.repository.calendar_source import InMemoryCalendarSource
from availability_engine.services.workflow_service import (
    HistoryEntryNotFoundError,
    SchedulingWorkflowService,
    SlotSelectionError,
    WorkflowValidationError,
)
from availability_engine.utils.config import get_settings
from availability_engine.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["scheduling"])


class BusyIntervalPayload(BaseModel):
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_bounds(self) -> BusyIntervalPayload:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("busy interval bounds must include a UTC offset")
        if self.start >= self.end:
            raise ValueError("busy interval start must be before end")
        return self


class FindSlotsRequest(BaseModel):
    """Input DTO; engine-level validation still runs inside the facade."""

    attendees: list[str] = Field(min_length=1)
    duration_minutes: int = Field(ge=15, le=480)
    window_start: datetime
    window_end: datetime
    working_days: Optional[list[int]] = None
    working_hours_start: Optional[time] = None
    working_hours_end: Optional[time] = None
    alignment_minutes: Optional[int] = Field(default=None, gt=0)
    max_results: Optional[int] = Field(default=None, ge=1, le=MAX_RESULTS_LIMIT)
    min_participants_available: Optional[int] = Field(default=None, ge=1)
    max_slots_per_day: Optional[int] = Field(default=None, ge=1)
    time_zone: Optional[str] = None
    seed: Optional[int] = Field(default=None, ge=0)
    user_id: Optional[str] = None
    busy_intervals: Optional[dict[str, list[BusyIntervalPayload]]] = None

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is None:
            return None
        if not value:
            raise ValueError("working_days must contain at least one weekday when provided")
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError("working_days values must be between 0 (Mon) and 6 (Sun)")
        return value

    def to_scheduling_request(self) -> SchedulingRequest:
        return SchedulingRequest(
            attendees=frozenset(attendee.strip() for attendee in self.attendees),
            duration_minutes=self.duration_minutes,
            window_start=self.window_start,
            window_end=self.window_end,
            working_days=(
                frozenset(self.working_days)
                if self.working_days is not None
                else WEEKDAYS
            ),
            working_hours_start=self.working_hours_start or settings.working_hours_start,
            working_hours_end=self.working_hours_end or settings.working_hours_end,
            alignment_minutes=self.alignment_minutes or settings.default_alignment_minutes,
            max_results=self.max_results or settings.default_max_results,
            min_participants_available=self.min_participants_available,
            max_slots_per_day=self.max_slots_per_day,
            time_zone=self.time_zone or settings.default_time_zone,
            seed=self.seed,
        )


class SlotResponse(BaseModel):
    start: datetime
    end: datetime
    available_participants: list[str]
    unavailable_participants: list[str]
    score: float = Field(ge=0.0, le=1.0)
    reason: str
    is_recommended: bool

    @classmethod
    def from_slot(cls, slot: ScoredSlot) -> SlotResponse:
        return cls(
            start=slot.start,
            end=slot.end,
            available_participants=sorted(slot.available_participants),
            unavailable_participants=sorted(slot.unavailable_participants),
            score=slot.score,
            reason=slot.reason,
            is_recommended=slot.is_recommended,
        )


class FindSlotsResponse(BaseModel):
    slots: list[SlotResponse]
    error: Optional[str] = None
    message: str
    degraded_participants: list[str]

    @classmethod
    def from_result(cls, result: SchedulingResult) -> FindSlotsResponse:
        return cls(
            slots=[SlotResponse.from_slot(slot) for slot in result.slots],
            error=result.error.value if result.error is not None else None,
            message=result.message,
            degraded_participants=list(result.degraded_participants),
        )


class HistoryEntryResponse(BaseModel):
    entry_id: str
    created_at: datetime
    attendees: list[str]
    duration_minutes: int
    window_start: datetime
    window_end: datetime
    slot_count: int = Field(ge=0)


class HistoryResponse(BaseModel):
    user_id: str
    entries: list[HistoryEntryResponse]


class SelectSlotRequest(BaseModel):
    user_id: str = Field(min_length=1)
    slot_number: int = Field(ge=1)


class HealthResponse(BaseModel):
    status: str
    app_name: str
    app_version: str


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        app_name=settings.app_name,
        app_version=settings.app_version,
    )


@router.post(
    "/find_slots",
    response_model=FindSlotsResponse,
    status_code=status.HTTP_200_OK,
)
async def find_slots(
    payload: FindSlotsRequest,
    service: SchedulingWorkflowService = Depends(get_workflow_service),
) -> FindSlotsResponse:
    """Resolve ranked slots; explicit busy intervals override the app's calendar source."""
    calendar_source = None
    if payload.busy_intervals is not None:
        calendar_source = InMemoryCalendarSource(
            {
                participant_id: [
                    TimeInterval(start=item.start, end=item.end) for item in intervals
                ]
                for participant_id, intervals in payload.busy_intervals.items()
            }
        )
    try:
        result = service.find_slots(
            payload.to_scheduling_request(),
            user_id=payload.user_id,
            calendar_source=calendar_source,
        )
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected availability search failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to resolve availability",
        ) from exc

    if result.error is SchedulingError.INVALID_REQUEST:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    if result.error is SchedulingError.SOURCE_UNAVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=result.message,
        )
    return FindSlotsResponse.from_result(result)


@router.get(
    "/history/{user_id}",
    response_model=HistoryResponse,
    status_code=status.HTTP_200_OK,
)
async def history(
    user_id: str,
    lookback_days: Optional[int] = Query(default=None, ge=1),
    service: SchedulingWorkflowService = Depends(get_workflow_service),
) -> HistoryResponse:
    try:
        entries = service.history(user_id, lookback_days=lookback_days)
    except WorkflowValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return HistoryResponse(
        user_id=user_id,
        entries=[
            HistoryEntryResponse(
                entry_id=entry.entry_id,
                created_at=entry.created_at,
                attendees=entry.request.sorted_attendees,
                duration_minutes=entry.request.duration_minutes,
                window_start=entry.request.window_start,
                window_end=entry.request.window_end,
                slot_count=len(entry.result.slots),
            )
            for entry in entries
        ],
    )


@router.post(
    "/select_slot",
    response_model=SlotResponse,
    status_code=status.HTTP_200_OK,
)
async def select_slot(
    payload: SelectSlotRequest,
    service: SchedulingWorkflowService = Depends(get_workflow_service),
) -> SlotResponse:
    try:
        slot = service.select_slot(payload.user_id, payload.slot_number)
        return SlotResponse.from_slot(slot)
    except HistoryEntryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SlotSelectionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
