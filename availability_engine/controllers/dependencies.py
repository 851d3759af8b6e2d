"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from availability_engine.services.workflow_service import SchedulingWorkflowService


def get_workflow_service(request: Request) -> SchedulingWorkflowService:
    service = getattr(request.app.state, "workflow_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduling workflow service is not initialized",
        )
    return service
