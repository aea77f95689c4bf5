"""Pydantic models for the SkyWatch core."""

from .aircraft import (
    ClassificationResult,
    ClassifiedAircraft,
    Confidence,
    FusedAircraftRecord,
    MilitaryCategory,
    RawAircraftRecord,
)
from .events import (
    AircraftLifecycleState,
    AircraftSnapshot,
    LifecycleEvent,
    LifecycleEventType,
)
from .notifications import NotificationLink, NotificationMessage

__all__ = [
    "AircraftLifecycleState",
    "AircraftSnapshot",
    "ClassificationResult",
    "ClassifiedAircraft",
    "Confidence",
    "FusedAircraftRecord",
    "LifecycleEvent",
    "LifecycleEventType",
    "MilitaryCategory",
    "NotificationLink",
    "NotificationMessage",
    "RawAircraftRecord",
]
