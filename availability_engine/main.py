"""FastAPI application bootstrap and service wiring."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from availability_engine.controllers.scheduling_controller import router as scheduling_router
from availability_engine.repository.caching_calendar_source import CachingCalendarSource
from availability_engine.repository.history_repository import InMemorySchedulingHistoryRepository
from availability_engine.repository.synthetic_calendar import SyntheticCalendarSource
from availability_engine.services.scheduling_facade import SchedulingFacade
from availability_engine.services.workflow_service import SchedulingWorkflowService
from availability_engine.utils.config import Settings, get_settings
from availability_engine.utils.logger import get_logger, log_event


logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app with every dependency wired explicitly onto app.state."""
    settings = settings or get_settings()

    facade = SchedulingFacade(settings=settings)
    history_repository = InMemorySchedulingHistoryRepository(settings=settings)
    synthetic_source = SyntheticCalendarSource(settings=settings)
    calendar_source = CachingCalendarSource(synthetic_source, settings=settings)
    workflow_service = SchedulingWorkflowService(
        facade=facade,
        history_repository=history_repository,
        calendar_source=calendar_source,
        settings=settings,
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
    )
    app.include_router(scheduling_router)

    app.state.facade = facade
    app.state.history_repository = history_repository
    app.state.calendar_source = calendar_source
    app.state.workflow_service = workflow_service

    log_event(
        logger,
        logging.INFO,
        "Application wired",
        busyness=f"{synthetic_source.busyness_level:.2f}",
        cache_ttl_seconds=calendar_source.ttl_seconds,
        time_zone=settings.default_time_zone,
    )
    return app


app = create_app()
