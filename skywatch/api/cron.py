"""Endpoints an external scheduler calls to drive polling passes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from skywatch.api.dependencies import get_coordinator
from skywatch.security import require_cron_secret
from skywatch.services.pipeline import PassResult, PipelineCoordinator, SweepResult

router = APIRouter(
    prefix="/api/v1/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_secret)],
)

logger = logging.getLogger("skywatch.api.cron")


@router.api_route(
    "/fetch-aircraft",
    methods=["GET", "POST"],
    response_model=PassResult,
    summary="Run one fusion pass",
)
async def fetch_aircraft(coordinator: PipelineCoordinator = Depends(get_coordinator)) -> PassResult:
    """Fetch, fuse, classify and track aircraft from every configured source."""

    return await coordinator.run_pass()


@router.api_route(
    "/sweep-lifecycle",
    methods=["GET", "POST"],
    response_model=SweepResult,
    summary="Emit signal-lost events for stale aircraft",
)
async def sweep_lifecycle(coordinator: PipelineCoordinator = Depends(get_coordinator)) -> SweepResult:
    result = await coordinator.run_sweep()
    logger.info("Lifecycle sweep: %s disappeared, %s still tracked", result.disappeared, result.tracked)
    return result
