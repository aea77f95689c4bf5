"""Single-aircraft lookup and source status endpoints."""

from __future__ import annotations

import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from skywatch.api.dependencies import get_coordinator
from skywatch.domain.aircraft_priors import get_aircraft_prior
from skywatch.domain.military import category_color, category_label
from skywatch.models.aircraft import ClassificationResult, FusedAircraftRecord
from skywatch.services.pipeline import PipelineCoordinator

router = APIRouter(prefix="/api/v1", tags=["aircraft"])

_HEX_PATTERN = re.compile(r"^~?[0-9A-Fa-f]{6}$")


class AircraftLookupResponse(BaseModel):
    record: FusedAircraftRecord
    classification: ClassificationResult
    category_label: str
    category_color: str
    aircraft_name: Optional[str] = None
    role: Optional[str] = None


class SourceStatus(BaseModel):
    name: str
    enabled: bool
    priority: int
    requests_per_minute: int


@router.get(
    "/aircraft/{hex_code}",
    response_model=AircraftLookupResponse,
    response_model_by_alias=False,
    summary="Look up one aircraft across every source",
)
async def lookup_aircraft(
    hex_code: str, coordinator: PipelineCoordinator = Depends(get_coordinator)
) -> AircraftLookupResponse:
    if not _HEX_PATTERN.match(hex_code.strip()):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": "invalid_hex", "message": "Expected a 6-digit ICAO hex address"},
        )

    found = await coordinator.lookup(hex_code)
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "aircraft_not_found", "message": f"No source reported {hex_code.upper()}"},
        )

    category = found.classification.category
    prior = get_aircraft_prior(found.record.type_code)
    return AircraftLookupResponse(
        record=found.record,
        classification=found.classification,
        category_label=category_label(category),
        category_color=category_color(category),
        aircraft_name=prior.name if prior else None,
        role=prior.description if prior else None,
    )


@router.get("/sources", response_model=list[SourceStatus], summary="Configured ADS-B sources")
def list_sources(coordinator: PipelineCoordinator = Depends(get_coordinator)) -> list[SourceStatus]:
    return [SourceStatus(**entry) for entry in coordinator.source_stats()]
