"""Lifecycle state and event models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from skywatch.models.aircraft import MilitaryCategory


class LifecycleEventType(str, Enum):
    """Real-world transitions detected across polling passes."""

    FIRST_APPEARANCE = "first_appearance"
    DEPARTURE = "departure"
    LANDING = "landing"
    DISAPPEARED = "disappeared"


class AircraftLifecycleState(BaseModel):
    """Last known state of one aircraft, diffed against on the next pass."""

    identifier: str
    on_ground: bool
    altitude: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: datetime
    callsign: Optional[str] = None
    type_code: Optional[str] = None
    category: Optional[MilitaryCategory] = None


class AircraftSnapshot(BaseModel):
    """Fields of an aircraft captured at event time."""

    identifier: str
    callsign: Optional[str] = None
    registration: Optional[str] = None
    type_code: Optional[str] = None
    type_description: Optional[str] = None
    operator: Optional[str] = None
    category: Optional[MilitaryCategory] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = Field(default=None, description="Barometric altitude in feet")
    ground_speed: Optional[int] = Field(default=None, description="Rounded knots")
    track: Optional[int] = Field(default=None, description="Rounded degrees")
    on_ground: bool = False
    last_on_ground_at: Optional[datetime] = None


class LifecycleEvent(BaseModel):
    """One detected transition, handed to collaborators then discarded."""

    type: LifecycleEventType
    identifier: str
    snapshot: AircraftSnapshot
    detail: str = ""
    timestamp: datetime


__all__ = [
    "AircraftLifecycleState",
    "AircraftSnapshot",
    "LifecycleEvent",
    "LifecycleEventType",
]
