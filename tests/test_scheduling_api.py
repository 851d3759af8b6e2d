from __future__ import annotations

from dataclasses import replace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from availability_engine.controllers.scheduling_controller import router as scheduling_router
from availability_engine.main import create_app
from availability_engine.repository.caching_calendar_source import CachingCalendarSource
from availability_engine.repository.calendar_source import InMemoryCalendarSource
from availability_engine.repository.history_repository import InMemorySchedulingHistoryRepository
from availability_engine.services.scheduling_facade import SchedulingFacade
from availability_engine.services.workflow_service import SchedulingWorkflowService
from availability_engine.utils.config import get_settings


def _build_test_settings():
    get_settings.cache_clear()
    return replace(
        get_settings(),
        scoring_jitter_amplitude=0.0,
        calendar_fetch_max_workers=2,
        calendar_fetch_timeout_seconds=5.0,
    )


def _build_test_app(calendar_source=None) -> FastAPI:
    settings = _build_test_settings()
    workflow_service = SchedulingWorkflowService(
        facade=SchedulingFacade(settings=settings),
        history_repository=InMemorySchedulingHistoryRepository(settings=settings),
        calendar_source=calendar_source or InMemoryCalendarSource(),
        settings=settings,
    )
    app = FastAPI()
    app.include_router(scheduling_router)
    app.state.workflow_service = workflow_service
    return app


def _payload(**overrides) -> dict:
    payload = {
        "attendees": ["a@x.com", "b@x.com"],
        "duration_minutes": 60,
        "window_start": "2026-03-02T09:00:00+00:00",
        "window_end": "2026-03-02T17:00:00+00:00",
        "busy_intervals": {
            "a@x.com": [
                {"start": "2026-03-02T10:00:00+00:00", "end": "2026-03-02T11:00:00+00:00"}
            ],
            "b@x.com": [],
        },
    }
    payload.update(overrides)
    return payload


def test_health_reports_app_metadata() -> None:
    client = TestClient(_build_test_app())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_find_slots_avoids_busy_interval() -> None:
    client = TestClient(_build_test_app())

    response = client.post("/find_slots", json=_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["error"] is None
    assert body["degraded_participants"] == []
    assert body["slots"]
    starts = [slot["start"] for slot in body["slots"]]
    assert all(not start.startswith("2026-03-02T10:") for start in starts)
    assert sum(slot["is_recommended"] for slot in body["slots"]) == 1
    for slot in body["slots"]:
        assert 0.0 <= slot["score"] <= 1.0
        assert slot["available_participants"] == ["a@x.com", "b@x.com"]


def test_find_slots_reports_no_availability_with_empty_slots() -> None:
    client = TestClient(_build_test_app())

    response = client.post(
        "/find_slots",
        json=_payload(
            window_start="2026-03-07T00:00:00+00:00",
            window_end="2026-03-08T23:00:00+00:00",
        ),
    )

    assert response.status_code == 200
    assert response.json()["error"] == "no_availability"
    assert response.json()["slots"] == []


def test_find_slots_rejects_inverted_window() -> None:
    client = TestClient(_build_test_app())

    response = client.post(
        "/find_slots",
        json=_payload(
            window_start="2026-03-02T17:00:00+00:00",
            window_end="2026-03-02T09:00:00+00:00",
        ),
    )

    assert response.status_code == 400


def test_find_slots_rejects_unknown_weekday() -> None:
    client = TestClient(_build_test_app())

    response = client.post("/find_slots", json=_payload(working_days=[0, 9]))

    assert response.status_code == 422


def test_find_slots_returns_503_when_calendar_source_is_down() -> None:
    failing = InMemoryCalendarSource(failing_participants={"a@x.com", "b@x.com"})
    client = TestClient(_build_test_app(calendar_source=failing))

    response = client.post("/find_slots", json=_payload(busy_intervals=None))

    assert response.status_code == 503


def test_search_history_and_slot_selection_flow() -> None:
    client = TestClient(_build_test_app())

    search = client.post("/find_slots", json=_payload(user_id="recruiter-1"))
    assert search.status_code == 200
    slots = search.json()["slots"]

    history = client.get("/history/recruiter-1")
    assert history.status_code == 200
    entries = history.json()["entries"]
    assert len(entries) == 1
    assert entries[0]["slot_count"] == len(slots)
    assert entries[0]["attendees"] == ["a@x.com", "b@x.com"]

    picked = client.post("/select_slot", json={"user_id": "recruiter-1", "slot_number": 1})
    assert picked.status_code == 200
    assert picked.json()["start"] == slots[0]["start"]

    out_of_range = client.post(
        "/select_slot",
        json={"user_id": "recruiter-1", "slot_number": len(slots) + 1},
    )
    assert out_of_range.status_code == 400


def test_select_slot_without_history_returns_404() -> None:
    client = TestClient(_build_test_app())

    response = client.post("/select_slot", json={"user_id": "nobody", "slot_number": 1})

    assert response.status_code == 404


def test_missing_workflow_service_returns_503() -> None:
    app = FastAPI()
    app.include_router(scheduling_router)
    client = TestClient(app)

    response = client.post("/find_slots", json=_payload())

    assert response.status_code == 503


def test_app_factory_serves_searches_through_calendar_cache() -> None:
    app = create_app(_build_test_settings())
    client = TestClient(app)

    payload = _payload(busy_intervals=None, attendees=["john.doe@company.com"])
    first = client.post("/find_slots", json=payload)
    second = client.post("/find_slots", json=payload)

    assert isinstance(app.state.calendar_source, CachingCalendarSource)
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert app.state.calendar_source.hits == 1
