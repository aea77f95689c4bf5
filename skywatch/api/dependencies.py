"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from skywatch.services.pipeline import PipelineCoordinator


def get_coordinator(request: Request) -> PipelineCoordinator:
    """Return the coordinator built during application startup."""

    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "pipeline_unavailable", "message": "Pipeline is not initialized"},
        )
    return coordinator


__all__ = ["get_coordinator"]
