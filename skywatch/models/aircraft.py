"""Aircraft records as they move through ingestion, fusion and classification."""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

GROUND = "ground"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _to_float(value: Any) -> Optional[float]:
    """Best-effort numeric coercion; unusable feed values become None."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# Scalar fields merged with first-defined-wins during fusion
MERGE_SCALAR_FIELDS: tuple[str, ...] = (
    "callsign",
    "registration",
    "type_code",
    "type_description",
    "operator",
    "latitude",
    "longitude",
    "altitude_baro",
    "altitude_geom",
    "ground_speed",
    "track",
    "vertical_rate",
    "squawk",
    "emitter_category",
)


class MilitaryCategory(str, Enum):
    """Military role categories."""

    TANKER = "tanker"
    AWACS = "awacs"
    ISR = "isr"
    TRANSPORT = "transport"
    FIGHTER = "fighter"
    HELICOPTER = "helicopter"
    TRAINER = "trainer"
    OTHER = "other"


class Confidence(str, Enum):
    """How much corroborating evidence backed a classification."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AircraftFields(BaseModel):
    """Fields shared by raw and fused aircraft records.

    Field aliases follow the readsb/tar1090 JSON used by adsb.lol,
    airplanes.live and adsb.fi.
    """

    identifier: str = Field(
        ..., alias="hex", min_length=1, description="24-bit ICAO address, uppercase hex"
    )
    callsign: Optional[str] = Field(default=None, alias="flight", description="Flight callsign")
    registration: Optional[str] = Field(default=None, alias="r", description="Registration")
    type_code: Optional[str] = Field(default=None, alias="t", description="ICAO type designator")
    type_description: Optional[str] = Field(
        default=None, alias="desc", description="Long type description"
    )
    operator: Optional[str] = Field(default=None, alias="ownOp", description="Owner or operator")
    latitude: Optional[float] = Field(default=None, alias="lat")
    longitude: Optional[float] = Field(default=None, alias="lon")
    altitude_baro: Union[Literal["ground"], float, None] = Field(
        default=None,
        alias="alt_baro",
        description="Barometric altitude in feet, or 'ground'",
    )
    altitude_geom: Optional[float] = Field(default=None, alias="alt_geom")
    ground_speed: Optional[float] = Field(default=None, alias="gs", description="Knots")
    track: Optional[float] = Field(default=None, description="Track over ground in degrees")
    vertical_rate: Optional[float] = Field(
        default=None, alias="baro_rate", description="Feet per minute"
    )
    squawk: Optional[str] = Field(default=None)
    emitter_category: Optional[str] = Field(
        default=None, alias="category", description="ADS-B emitter category (e.g. A5)"
    )
    seen: Optional[float] = Field(
        default=None, description="Seconds since any message was received"
    )
    seen_pos: Optional[float] = Field(
        default=None, description="Seconds since the last position update"
    )
    military_flag: bool = Field(
        default=False, alias="mil", description="Upstream feed's own military flag"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("identifier", mode="before")
    @classmethod
    def _normalize_identifier(cls, value: Any) -> Any:
        # readsb prefixes non-ICAO (TIS-B, anonymous) addresses with "~"; keep it
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator(
        "callsign",
        "registration",
        "type_code",
        "type_description",
        "operator",
        "squawk",
        "emitter_category",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator(
        "latitude",
        "longitude",
        "altitude_geom",
        "ground_speed",
        "track",
        "vertical_rate",
        "seen",
        "seen_pos",
        mode="before",
    )
    @classmethod
    def _coerce_number(cls, value: Any) -> Optional[float]:
        return _to_float(value)

    @field_validator("altitude_baro", mode="before")
    @classmethod
    def _normalize_ground(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() == GROUND:
            return GROUND
        return _to_float(value)

    @model_validator(mode="before")
    @classmethod
    def _military_from_db_flags(cls, data: Any) -> Any:
        # adsb.lol, airplanes.live and adsb.fi carry the military bit in dbFlags
        if isinstance(data, dict) and "mil" not in data and "military_flag" not in data:
            flags = data.get("dbFlags")
            if isinstance(flags, int) and not isinstance(flags, bool):
                return {**data, "mil": bool(flags & 1)}
        return data

    @field_validator("military_flag", mode="before")
    @classmethod
    def _flag_default(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        return bool(value) if value is not None else False

    @property
    def is_icao(self) -> bool:
        """False for readsb's "~"-prefixed non-ICAO addresses."""

        return not self.identifier.startswith("~")

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def numeric_altitude(self) -> Optional[float]:
        if isinstance(self.altitude_baro, (int, float)):
            return float(self.altitude_baro)
        return None

    def is_on_ground(self, airborne_threshold_ft: float) -> bool:
        """Explicit ground marker, or barometric altitude below the airborne threshold."""

        if self.altitude_baro == GROUND:
            return True
        altitude = self.numeric_altitude
        return altitude is not None and altitude < airborne_threshold_ft


class RawAircraftRecord(AircraftFields):
    """One aircraft as reported by a single feed in a single pass."""

    source: str = Field(..., description="Name of the feed that produced the record")


class FusedAircraftRecord(AircraftFields):
    """One aircraft per identifier per pass, merged from every contributing feed."""

    sources: list[str] = Field(
        ..., min_length=1, description="De-duplicated contributing feed names"
    )

    @classmethod
    def from_raw(cls, raw: RawAircraftRecord) -> "FusedAircraftRecord":
        data = raw.model_dump(exclude={"source"})
        return cls.model_validate({**data, "sources": [raw.source]})


class ClassificationResult(BaseModel):
    """Outcome of the military classification cascade."""

    is_military: bool
    category: Optional[MilitaryCategory] = None
    country: Optional[str] = None
    confidence: Confidence = Confidence.LOW
    rule: str = Field(default="", description="Name of the rule that decided")


class ClassifiedAircraft(BaseModel):
    """A fused record with its classification attached."""

    record: FusedAircraftRecord
    classification: ClassificationResult

    @property
    def identifier(self) -> str:
        return self.record.identifier


__all__ = [
    "AircraftFields",
    "ClassificationResult",
    "ClassifiedAircraft",
    "Confidence",
    "FusedAircraftRecord",
    "GROUND",
    "MERGE_SCALAR_FIELDS",
    "MilitaryCategory",
    "RawAircraftRecord",
]
