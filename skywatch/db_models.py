"""SQLAlchemy ORM models for SkyWatch."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from skywatch.db import Base


class AircraftRow(Base):
    """Latest identity and classification of every aircraft seen in region."""

    __tablename__ = "aircraft"
    __table_args__ = (Index("ix_aircraft_is_military", "is_military"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    icao_hex: Mapped[str] = mapped_column(String(7), unique=True, index=True, nullable=False)
    callsign: Mapped[str | None] = mapped_column(String(16), nullable=True)
    registration: Mapped[str | None] = mapped_column(String(32), nullable=True)
    type_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    type_description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    operator: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_military: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    military_category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    confidence: Mapped[str | None] = mapped_column(String(16), nullable=True)
    classification_rule: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sources: Mapped[list | None] = mapped_column(JSON, nullable=True)

    first_seen_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class PositionLatestRow(Base):
    """Most recent position per aircraft; doubles as durable lifecycle state."""

    __tablename__ = "positions_latest"

    icao_hex: Mapped[str] = mapped_column(String(7), primary_key=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    altitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    ground_speed: Mapped[float | None] = mapped_column(Float, nullable=True)
    track: Mapped[float | None] = mapped_column(Float, nullable=True)
    vertical_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    squawk: Mapped[str | None] = mapped_column(String(8), nullable=True)
    on_ground: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class AlertRow(Base):
    """Append-only log of lifecycle events."""

    __tablename__ = "alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    alert_type: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


__all__ = ["AircraftRow", "AlertRow", "PositionLatestRow"]
