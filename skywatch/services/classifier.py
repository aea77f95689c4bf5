"""Military classification cascade.

Rules run in a fixed order and the first match decides. Civilian evidence is
checked first because a false military label costs more than a missed one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from skywatch.domain.military import (
    CIVILIAN_AIRLINE_PREFIXES,
    CIVILIAN_OPERATOR_KEYWORDS,
    CIVILIAN_OPERATORS,
    MILITARY_CALLSIGN_PATTERNS,
    MILITARY_HEX_RANGES,
    MILITARY_TYPE_PATTERNS,
    TRUSTED_HEX_RANGE_COUNTRY,
    HexRange,
)
from skywatch.models.aircraft import (
    AircraftFields,
    ClassificationResult,
    ClassifiedAircraft,
    Confidence,
    FusedAircraftRecord,
    MilitaryCategory,
)

logger = logging.getLogger("skywatch.services.classifier")


def _normalize(value: Optional[str]) -> str:
    return value.strip().upper() if value else ""


def is_callsign_civilian(callsign: Optional[str]) -> bool:
    normalized = _normalize(callsign)
    return bool(normalized) and normalized.startswith(CIVILIAN_AIRLINE_PREFIXES)


def is_operator_civilian(operator: Optional[str]) -> bool:
    """True when ``operator`` names a known airline or carries a civilian keyword."""

    normalized = _normalize(operator)
    if not normalized:
        return False
    return any(name in normalized for name in CIVILIAN_OPERATORS) or any(
        keyword in normalized for keyword in CIVILIAN_OPERATOR_KEYWORDS
    )


def is_callsign_military(callsign: Optional[str]) -> bool:
    normalized = _normalize(callsign)
    return bool(normalized) and any(p.search(normalized) for p in MILITARY_CALLSIGN_PATTERNS)


def get_military_category(type_code: Optional[str]) -> Optional[MilitaryCategory]:
    if not type_code:
        return None
    for category, patterns in MILITARY_TYPE_PATTERNS.items():
        if any(pattern.search(type_code) for pattern in patterns):
            return category
    return None


def match_hex_range(identifier: str) -> Optional[HexRange]:
    if identifier.startswith("~"):
        return None
    try:
        value = int(identifier, 16)
    except (TypeError, ValueError):
        return None
    for hex_range in MILITARY_HEX_RANGES:
        if hex_range.contains(value):
            return hex_range
    return None


@dataclass(frozen=True)
class ClassificationEvidence:
    """Facts about one record, computed once and shared by every rule."""

    callsign: str
    operator: str
    description: str
    type_category: Optional[MilitaryCategory]
    hex_range: Optional[HexRange]
    military_flag: bool
    civilian_callsign: bool
    civilian_operator: bool
    civilian_description: bool

    @classmethod
    def from_record(cls, record: AircraftFields) -> "ClassificationEvidence":
        return cls(
            callsign=_normalize(record.callsign),
            operator=_normalize(record.operator),
            description=_normalize(record.type_description),
            type_category=get_military_category(record.type_code),
            hex_range=match_hex_range(record.identifier) if record.is_icao else None,
            military_flag=record.military_flag,
            civilian_callsign=is_callsign_civilian(record.callsign),
            civilian_operator=is_operator_civilian(record.operator),
            civilian_description=is_operator_civilian(record.type_description),
        )

    @property
    def category_or_other(self) -> MilitaryCategory:
        return self.type_category or MilitaryCategory.OTHER


def _civilian(rule: str) -> Callable[[ClassificationEvidence], ClassificationResult]:
    def outcome(evidence: ClassificationEvidence) -> ClassificationResult:
        return ClassificationResult(is_military=False, confidence=Confidence.HIGH, rule=rule)

    return outcome


@dataclass(frozen=True)
class Rule:
    name: str
    applies: Callable[[ClassificationEvidence], bool]
    outcome: Callable[[ClassificationEvidence], ClassificationResult]


RULES: tuple[Rule, ...] = (
    Rule(
        "civilian_callsign",
        lambda e: e.civilian_callsign,
        _civilian("civilian_callsign"),
    ),
    Rule(
        "civilian_operator",
        lambda e: e.civilian_operator,
        _civilian("civilian_operator"),
    ),
    Rule(
        "civilian_description",
        lambda e: e.civilian_description,
        _civilian("civilian_description"),
    ),
    Rule(
        "military_type",
        lambda e: e.type_category is not None
        and not e.civilian_operator
        and not e.civilian_description,
        lambda e: ClassificationResult(
            is_military=True,
            category=e.type_category,
            confidence=Confidence.HIGH,
            rule="military_type",
        ),
    ),
    Rule(
        "military_callsign",
        lambda e: is_callsign_military(e.callsign),
        lambda e: ClassificationResult(
            is_military=True,
            category=e.type_category,
            confidence=Confidence.MEDIUM,
            rule="military_callsign",
        ),
    ),
    Rule(
        "trusted_hex_range",
        lambda e: e.hex_range is not None and e.hex_range.country == TRUSTED_HEX_RANGE_COUNTRY,
        lambda e: ClassificationResult(
            is_military=True,
            category=e.category_or_other,
            country=TRUSTED_HEX_RANGE_COUNTRY,
            confidence=Confidence.HIGH,
            rule="trusted_hex_range",
        ),
    ),
    Rule(
        "flagged_in_hex_range",
        lambda e: e.military_flag and e.hex_range is not None,
        lambda e: ClassificationResult(
            is_military=True,
            category=e.category_or_other,
            country=e.hex_range.country if e.hex_range else None,
            confidence=Confidence.MEDIUM,
            rule="flagged_in_hex_range",
        ),
    ),
    Rule(
        "flagged_without_identity",
        lambda e: e.military_flag and not (e.callsign or e.operator or e.description),
        lambda e: ClassificationResult(
            is_military=True,
            category=e.category_or_other,
            confidence=Confidence.LOW,
            rule="flagged_without_identity",
        ),
    ),
)

_DEFAULT_RESULT = ClassificationResult(is_military=False, confidence=Confidence.LOW, rule="default")


def classify(record: AircraftFields) -> ClassificationResult:
    """Classify one record. Pure and deterministic."""

    evidence = ClassificationEvidence.from_record(record)
    for rule in RULES:
        if rule.applies(evidence):
            return rule.outcome(evidence)
    return _DEFAULT_RESULT.model_copy()


def classify_all(records: list[FusedAircraftRecord]) -> list[ClassifiedAircraft]:
    classified = [
        ClassifiedAircraft(record=record, classification=classify(record)) for record in records
    ]
    logger.debug(
        "Classified %s records, %s military",
        len(classified),
        sum(1 for item in classified if item.classification.is_military),
    )
    return classified


__all__ = [
    "RULES",
    "ClassificationEvidence",
    "Rule",
    "classify",
    "classify_all",
    "get_military_category",
    "is_callsign_civilian",
    "is_callsign_military",
    "is_operator_civilian",
    "match_hex_range",
]
