"""SQLAlchemy-backed storage for aircraft, latest positions and lifecycle alerts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skywatch import db_models
from skywatch.config import settings
from skywatch.db import SessionLocal
from skywatch.errors import DeliveryError
from skywatch.models.aircraft import ClassifiedAircraft, MilitaryCategory
from skywatch.models.events import AircraftLifecycleState, LifecycleEvent
from skywatch.services.notifications import event_severity, event_title

logger = logging.getLogger("skywatch.services.storage")


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_aware_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyAircraftStore:
    """Persist pipeline output through SQLAlchemy sessions.

    Write failures are rolled back and surfaced as :class:`DeliveryError`.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        *,
        airborne_threshold_ft: float | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._session_factory = session_factory
        self.airborne_threshold_ft = (
            airborne_threshold_ft
            if airborne_threshold_ft is not None
            else settings.airborne_altitude_threshold_ft
        )
        self._clock = clock

    def upsert_aircraft(self, aircraft: Iterable[ClassifiedAircraft]) -> int:
        """Insert or update one ``aircraft`` row per record, plus its latest position."""

        now = _to_naive_utc(self._clock())
        items = list(aircraft)
        if not items:
            return 0

        with self._session_factory() as session:
            try:
                identifiers = [item.identifier for item in items]
                existing = {
                    row.icao_hex: row
                    for row in session.scalars(
                        select(db_models.AircraftRow).where(
                            db_models.AircraftRow.icao_hex.in_(identifiers)
                        )
                    )
                }
                positions = {
                    row.icao_hex: row
                    for row in session.scalars(
                        select(db_models.PositionLatestRow).where(
                            db_models.PositionLatestRow.icao_hex.in_(identifiers)
                        )
                    )
                }

                for item in items:
                    record = item.record
                    classification = item.classification
                    row = existing.get(record.identifier)
                    if row is None:
                        row = db_models.AircraftRow(icao_hex=record.identifier, first_seen_at=now)
                        session.add(row)
                        existing[record.identifier] = row

                    row.callsign = record.callsign
                    row.registration = record.registration
                    row.type_code = record.type_code
                    row.type_description = record.type_description
                    row.operator = record.operator
                    row.is_military = classification.is_military
                    row.military_category = (
                        classification.category.value if classification.category else None
                    )
                    row.country = classification.country
                    row.confidence = classification.confidence.value
                    row.classification_rule = classification.rule
                    row.sources = list(record.sources)
                    row.last_seen_at = now

                    if not record.has_position:
                        continue

                    position = positions.get(record.identifier)
                    if position is None:
                        position = db_models.PositionLatestRow(icao_hex=record.identifier)
                        session.add(position)
                        positions[record.identifier] = position
                    position.latitude = record.latitude
                    position.longitude = record.longitude
                    position.altitude = record.numeric_altitude
                    position.ground_speed = record.ground_speed
                    position.track = record.track
                    position.vertical_rate = record.vertical_rate
                    position.squawk = record.squawk
                    position.on_ground = record.is_on_ground(self.airborne_threshold_ft)
                    position.source = ",".join(record.sources)
                    position.timestamp = now

                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Failed to upsert %s aircraft: %s", len(items), exc)
                raise DeliveryError(f"aircraft upsert failed: {exc}") from exc

        logger.debug("Upserted %s aircraft", len(items))
        return len(items)

    def record_event(self, event: LifecycleEvent) -> None:
        row = db_models.AlertRow(
            alert_type=f"aircraft_{event.type.value}",
            severity=event_severity(event),
            title=event_title(event),
            description=event.detail,
            data=event.snapshot.model_dump(mode="json"),
            created_at=_to_naive_utc(event.timestamp),
        )
        with self._session_factory() as session:
            try:
                session.add(row)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise DeliveryError(f"alert insert failed: {exc}") from exc

    def load_state(self, identifier: str) -> Optional[AircraftLifecycleState]:
        """Rebuild lifecycle state from the latest stored position, if any."""

        key = identifier.upper()
        with self._session_factory() as session:
            position = session.get(db_models.PositionLatestRow, key)
            if position is None:
                return None
            aircraft = session.scalars(
                select(db_models.AircraftRow).where(db_models.AircraftRow.icao_hex == key)
            ).first()

            category = None
            if aircraft is not None and aircraft.military_category:
                category = MilitaryCategory(aircraft.military_category)

            return AircraftLifecycleState(
                identifier=key,
                on_ground=position.on_ground,
                altitude=position.altitude,
                latitude=position.latitude,
                longitude=position.longitude,
                timestamp=_to_aware_utc(position.timestamp),
                callsign=aircraft.callsign if aircraft else None,
                type_code=aircraft.type_code if aircraft else None,
                category=category,
            )


__all__ = ["SqlAlchemyAircraftStore"]
