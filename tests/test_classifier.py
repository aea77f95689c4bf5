import pytest

from skywatch.domain.military import category_color, category_label
from skywatch.models.aircraft import Confidence, FusedAircraftRecord, MilitaryCategory
from skywatch.services.classifier import (
    classify,
    get_military_category,
    is_callsign_civilian,
    is_callsign_military,
    is_operator_civilian,
    match_hex_range,
)


def _record(identifier: str = "400123", **fields) -> FusedAircraftRecord:
    return FusedAircraftRecord(identifier=identifier, sources=["test"], **fields)


def test_civilian_callsign_beats_type_and_flag():
    result = classify(_record(callsign="UAE123", type_code="F16", military_flag=True))

    assert result.is_military is False
    assert result.confidence == Confidence.HIGH
    assert result.rule == "civilian_callsign"


def test_usa_military_range_is_standalone_evidence():
    result = classify(_record("ADF7C8"))

    assert result.is_military is True
    assert result.confidence == Confidence.HIGH
    assert result.country == "USA"
    assert result.category == MilitaryCategory.OTHER


def test_civilian_operator_overrides_military_type():
    result = classify(_record("AE0001", operator="Qatar Airways", type_code="C17"))

    assert result.is_military is False
    assert result.rule == "civilian_operator"


def test_civilian_keyword_in_description():
    result = classify(_record(type_code="A400", type_description="Atlas Cargo Charter"))

    assert result.is_military is False
    assert result.rule == "civilian_description"


def test_military_type_code_is_high_confidence():
    result = classify(_record(type_code="KC135"))

    assert result.is_military is True
    assert result.category == MilitaryCategory.TANKER
    assert result.confidence == Confidence.HIGH
    assert result.country is None


def test_military_callsign_is_medium_confidence_without_category():
    result = classify(_record(callsign="RCH871"))

    assert result.is_military is True
    assert result.confidence == Confidence.MEDIUM
    assert result.category is None


def test_upstream_flag_needs_hex_range_support():
    result = classify(_record("43C123", callsign="ASCOT1", military_flag=True))

    assert result.is_military is True
    assert result.confidence == Confidence.MEDIUM
    assert result.country == "UK"
    assert result.category == MilitaryCategory.OTHER


def test_non_usa_range_alone_is_not_military():
    result = classify(_record("738A12"))

    assert result.is_military is False
    assert result.confidence == Confidence.LOW


def test_upstream_flag_without_any_identity_is_low_confidence():
    result = classify(_record("400123", military_flag=True))

    assert result.is_military is True
    assert result.confidence == Confidence.LOW
    assert result.category == MilitaryCategory.OTHER
    assert result.rule == "flagged_without_identity"


def test_upstream_flag_with_unremarkable_callsign_is_rejected():
    result = classify(_record("400123", callsign="N123AB", military_flag=True))

    assert result.is_military is False
    assert result.confidence == Confidence.LOW
    assert result.rule == "default"


def test_classification_is_deterministic():
    record = _record("AE1234", callsign="RCH1", type_code="C17", military_flag=True)

    assert classify(record) == classify(record)


@pytest.mark.parametrize(
    "type_code, expected",
    [
        ("KC46", MilitaryCategory.TANKER),
        ("E3TF", MilitaryCategory.AWACS),
        ("RC135", MilitaryCategory.ISR),
        ("MQ-9", MilitaryCategory.ISR),
        ("C130", MilitaryCategory.TRANSPORT),
        ("F-16", MilitaryCategory.FIGHTER),
        ("UH60", MilitaryCategory.HELICOPTER),
        ("T38", MilitaryCategory.TRAINER),
        ("B738", None),
        (None, None),
    ],
)
def test_get_military_category(type_code, expected):
    assert get_military_category(type_code) == expected


def test_callsign_and_operator_helpers():
    assert is_callsign_civilian(" thy4ab ")
    assert not is_callsign_civilian("UAF12")
    assert not is_callsign_civilian(None)
    assert is_callsign_military("duke21")
    assert not is_callsign_military("DUKE")
    assert is_operator_civilian("Some Leasing Company")
    assert not is_operator_civilian("United States Air Force")


def test_non_icao_address_is_never_hex_range_evidence():
    anonymous = _record("~ADF900")
    flagged = _record("~4B8123", callsign="TEST12", military_flag=True)

    assert anonymous.is_icao is False
    assert classify(anonymous).is_military is False
    assert classify(anonymous).rule == "default"
    assert classify(flagged).is_military is False
    assert classify(_record("ADF900")).rule == "trusted_hex_range"


def test_match_hex_range():
    assert match_hex_range("AE0000").country == "USA"
    assert match_hex_range("4B8123").country == "Turkey"
    assert match_hex_range("400000") is None
    assert match_hex_range("not-hex") is None
    assert match_hex_range("~AE0000") is None


def test_category_display_helpers():
    assert category_label(MilitaryCategory.AWACS) == "AWACS/AEW"
    assert category_label(None) == "Unknown"
    assert category_color(MilitaryCategory.FIGHTER) == "#ef4444"
    assert category_color(None) == "#dc2626"
