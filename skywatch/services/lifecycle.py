"""Detect aircraft lifecycle transitions across polling passes."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from skywatch.config import settings
from skywatch.domain.military import category_label
from skywatch.models.aircraft import ClassifiedAircraft, FusedAircraftRecord
from skywatch.models.events import (
    AircraftLifecycleState,
    AircraftSnapshot,
    LifecycleEvent,
    LifecycleEventType,
)

logger = logging.getLogger("skywatch.services.lifecycle")

DateClock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleStateStore(Protocol):
    def load_state(self, identifier: str) -> Optional[AircraftLifecycleState]:
        ...


def format_location(lat: Optional[float], lon: Optional[float]) -> Optional[str]:
    """Render ``33.50°N, 35.50°E`` style coordinates."""

    if lat is None or lon is None:
        return None
    lat_dir = "N" if lat >= 0 else "S"
    lon_dir = "E" if lon >= 0 else "W"
    return f"{abs(lat):.2f}°{lat_dir}, {abs(lon):.2f}°{lon_dir}"


def _rounded(value: Optional[float]) -> Optional[int]:
    return round(value) if value is not None else None


class LifecycleStateTracker:
    """Diff each observed aircraft against its last known state.

    The in-memory cache is authoritative while the process lives. On a cache
    miss, e.g. after a restart, the durable store is consulted.
    """

    def __init__(
        self,
        state_store: LifecycleStateStore | None = None,
        *,
        airborne_threshold_ft: float | None = None,
        disappeared_after_seconds: float | None = None,
        clock: DateClock = utcnow,
    ) -> None:
        self.state_store = state_store
        self.airborne_threshold_ft = (
            airborne_threshold_ft
            if airborne_threshold_ft is not None
            else settings.airborne_altitude_threshold_ft
        )
        self.disappeared_after = timedelta(
            seconds=disappeared_after_seconds
            if disappeared_after_seconds is not None
            else settings.disappeared_after_seconds
        )
        self._clock = clock
        self._states: dict[str, AircraftLifecycleState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def get_state(self, identifier: str) -> Optional[AircraftLifecycleState]:
        return self._states.get(identifier.upper())

    def set_state(self, state: AircraftLifecycleState) -> None:
        self._states[state.identifier.upper()] = state

    def _previous_state(self, identifier: str) -> Optional[AircraftLifecycleState]:
        cached = self._states.get(identifier)
        if cached is not None or self.state_store is None:
            return cached
        try:
            return self.state_store.load_state(identifier)
        except Exception as exc:  # store failures count as "no prior state"
            logger.warning("Failed to load lifecycle state for %s: %s", identifier, exc)
            return None

    def observe(self, aircraft: ClassifiedAircraft) -> list[LifecycleEvent]:
        """Return the events implied by ``aircraft`` and record its new state."""

        record = aircraft.record
        identifier = record.identifier.upper()
        category = aircraft.classification.category
        now = self._clock()
        on_ground = record.is_on_ground(self.airborne_threshold_ft)
        previous = self._previous_state(identifier)

        events: list[LifecycleEvent] = []
        if previous is None:
            if record.has_position:
                label = category_label(category) if category else "military"
                events.append(
                    self._event(
                        LifecycleEventType.FIRST_APPEARANCE,
                        record,
                        aircraft,
                        now,
                        on_ground=on_ground,
                        last_on_ground_at=now if on_ground else None,
                        detail=f"New {label} aircraft detected",
                    )
                )
        elif previous.on_ground and not on_ground:
            origin = format_location(previous.latitude, previous.longitude)
            events.append(
                self._event(
                    LifecycleEventType.DEPARTURE,
                    record,
                    aircraft,
                    now,
                    on_ground=False,
                    last_on_ground_at=previous.timestamp,
                    detail=f"Aircraft departed from {origin}" if origin else "Aircraft departed",
                )
            )
        elif not previous.on_ground and on_ground:
            location = format_location(record.latitude, record.longitude)
            events.append(
                self._event(
                    LifecycleEventType.LANDING,
                    record,
                    aircraft,
                    now,
                    on_ground=True,
                    last_on_ground_at=now,
                    detail=f"Aircraft landed at {location}" if location else "Aircraft landed",
                )
            )

        self._states[identifier] = AircraftLifecycleState(
            identifier=identifier,
            on_ground=on_ground,
            altitude=record.numeric_altitude,
            latitude=record.latitude,
            longitude=record.longitude,
            timestamp=now,
            callsign=record.callsign,
            type_code=record.type_code,
            category=category,
        )

        for event in events:
            logger.info("Lifecycle event %s for %s", event.type.value, identifier)
        return events

    def _event(
        self,
        event_type: LifecycleEventType,
        record: FusedAircraftRecord,
        aircraft: ClassifiedAircraft,
        now: datetime,
        *,
        on_ground: bool,
        last_on_ground_at: Optional[datetime],
        detail: str,
    ) -> LifecycleEvent:
        snapshot = AircraftSnapshot(
            identifier=record.identifier.upper(),
            callsign=record.callsign,
            registration=record.registration,
            type_code=record.type_code,
            type_description=record.type_description,
            operator=record.operator,
            category=aircraft.classification.category,
            latitude=record.latitude,
            longitude=record.longitude,
            altitude=record.numeric_altitude,
            ground_speed=_rounded(record.ground_speed),
            track=_rounded(record.track),
            on_ground=on_ground,
            last_on_ground_at=last_on_ground_at,
        )
        return LifecycleEvent(
            type=event_type,
            identifier=snapshot.identifier,
            snapshot=snapshot,
            detail=detail,
            timestamp=now,
        )

    def sweep_disappeared(self) -> list[LifecycleEvent]:
        """Emit ``disappeared`` for every state older than the threshold and drop it.

        Only cached states are swept; an aircraft known solely to the durable
        store has no live signal to lose.
        """

        now = self._clock()
        events: list[LifecycleEvent] = []
        for identifier, state in list(self._states.items()):
            age = now - state.timestamp
            if age <= self.disappeared_after:
                continue
            del self._states[identifier]
            minutes = int(age.total_seconds() // 60)
            snapshot = AircraftSnapshot(
                identifier=identifier,
                callsign=state.callsign,
                type_code=state.type_code,
                category=state.category,
                latitude=state.latitude,
                longitude=state.longitude,
                altitude=state.altitude,
                on_ground=state.on_ground,
            )
            events.append(
                LifecycleEvent(
                    type=LifecycleEventType.DISAPPEARED,
                    identifier=identifier,
                    snapshot=snapshot,
                    detail=f"No signal for {minutes} minutes",
                    timestamp=now,
                )
            )

        if events:
            logger.info("Lifecycle sweep dropped %s aircraft", len(events))
        return events

    def cache_stats(self) -> dict[str, object]:
        oldest = min((state.timestamp for state in self._states.values()), default=None)
        return {"size": len(self._states), "oldest_entry": oldest}


__all__ = [
    "LifecycleStateStore",
    "LifecycleStateTracker",
    "format_location",
    "utcnow",
]
