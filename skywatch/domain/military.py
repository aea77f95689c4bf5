"""Reference tables for military aircraft identification.

Everything here is plain data. Adding a country range, a type pattern or a
callsign prefix should never require touching the classifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from skywatch.models.aircraft import MilitaryCategory


@dataclass(frozen=True)
class HexRange:
    """Inclusive block of ICAO addresses reserved for a country's military."""

    country: str
    start: int
    end: int

    def contains(self, value: int) -> bool:
        return self.start <= value <= self.end


# Only the USA block is trusted as standalone evidence; the others mix
# civilian and military allocations.
TRUSTED_HEX_RANGE_COUNTRY = "USA"

MILITARY_HEX_RANGES: tuple[HexRange, ...] = (
    HexRange("USA", 0xADF7C7, 0xAFFFFF),
    HexRange("UK", 0x43C000, 0x43CFFF),
    HexRange("France", 0x3B0000, 0x3BFFFF),
    HexRange("Germany", 0x3F0000, 0x3FFFFF),
    HexRange("Israel", 0x738A00, 0x738AFF),
    HexRange("Turkey", 0x4B8000, 0x4B8FFF),
    HexRange("Saudi Arabia", 0x710000, 0x710FFF),
    HexRange("UAE", 0x896000, 0x896FFF),
    HexRange("Egypt", 0x010000, 0x010FFF),
    HexRange("Iran", 0x730000, 0x730FFF),
    HexRange("Russia", 0x150000, 0x15FFFF),
    HexRange("China", 0x780000, 0x787FFF),
)


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


# Evaluated in declaration order; the first category with a matching pattern wins.
MILITARY_TYPE_PATTERNS: dict[MilitaryCategory, tuple[re.Pattern[str], ...]] = {
    MilitaryCategory.TANKER: _patterns(r"^KC\d{2,3}", r"^A33[02]", r"^A400", r"MRTT"),
    MilitaryCategory.AWACS: _patterns(r"^E-?3", r"^E-?7", r"^E767", r"AWACS"),
    MilitaryCategory.ISR: _patterns(
        r"^RC-?135",
        r"^EP-?3",
        r"^P-?8",
        r"^RQ-?\d",
        r"^MQ-?\d",
        r"^U-?2",
        r"^E-?8",
        r"JSTARS",
        r"SENTINEL",
        r"HAWK",
        r"REAPER",
    ),
    MilitaryCategory.TRANSPORT: _patterns(
        r"^C-?17",
        r"^C-?5",
        r"^C-?130",
        r"^C-?30J",
        r"^A400",
        r"^AN-?\d{2}",
        r"^IL-?76",
    ),
    MilitaryCategory.FIGHTER: _patterns(
        r"^F-?\d{2}",
        r"^FA-?18",
        r"^F-?22",
        r"^F-?35",
        r"^SU-?\d{2}",
        r"^MIG",
        r"^TYPHOON",
        r"^RAFALE",
        r"^TORNADO",
    ),
    MilitaryCategory.HELICOPTER: _patterns(
        r"^H-?60",
        r"^UH-?60",
        r"^AH-?64",
        r"^CH-?47",
        r"^V-?22",
        r"^MH-?53",
        r"^HH-?60",
        r"APACHE",
        r"BLACKHAWK",
        r"CHINOOK",
        r"OSPREY",
    ),
    MilitaryCategory.TRAINER: _patterns(r"^T-?\d{1,2}", r"TEXAN", r"HAWK"),
    MilitaryCategory.OTHER: (),
}

# Prefix followed by a digit, e.g. RCH123
MILITARY_CALLSIGN_PATTERNS: tuple[re.Pattern[str], ...] = _patterns(
    r"^RCH\d",  # Reach (USAF airlift)
    r"^DUKE\d",
    r"^EVAC\d",
    r"^JAKE\d",  # tanker
    r"^SHELL\d",
    r"^TEXAN\d",
    r"^PETRO\d",
    r"^AWACS\d",
    r"^SENTRY\d",
    r"^MAGIC\d",
    r"^COBRA\d",  # ISR
    r"^RIVET\d",
    r"^OLIVE\d",
    r"^GIANT\d",  # C-5
    r"^MOOSE\d",  # C-17
    r"^NAVY\d",
    r"^ARMY\d",
    r"^CHAOS\d",  # USMC
    r"^IRON\d",
    r"^STEEL\d",
    r"^VIPER\d",
    r"^EAGLE\d",
    r"^RAPTOR\d",
    r"^LIGHTNING\d",
    r"^HAWG\d",  # A-10
    r"^BOXER\d",
    r"^PACK\d",
    r"^QUID\d",
    r"^IAF\d",
    r"^IRIAF\d",
    r"^THY\d",  # shadowed by the THY airline prefix below
    r"^TUAF\d",
    r"^UAF\d",  # UAE Air Force
    r"^RSAF\d",
    r"^REAF\d",
    r"^QAF\d",
    r"^KAF\d",
    r"^BAF\d",
    r"^OAF\d",
    r"^IQAF\d",
    r"^SJAF\d",
    r"^LAF\d",
    r"^EAF\d",
)

# UAF is the UAE Air Force and must stay out of this list.
CIVILIAN_AIRLINE_PREFIXES: tuple[str, ...] = (
    "FDB", "UAE", "ETD", "QTR", "GFA", "KAC", "SVA", "MEA", "THY", "PGT",
    "AXB", "FJI", "RJA", "MSR", "MSC", "ELY", "IRA", "IRC", "SYR", "LBN",
    "CYP", "OMA", "ABY", "NIA", "AEE", "WZZ", "RYR", "EZY", "DLH", "BAW",
    "AFR", "KLM", "SWR", "AUA", "THA", "SIA", "CPA", "AAL", "DAL", "UAL",
    "SWA", "FFT", "JBU", "ASA", "ACA", "JAL", "ANA", "CES", "CSN", "CCA",
    "KAL", "AAR", "TUI", "ICE", "FIN", "SAS", "TAP", "IBE", "VLG", "AZA",
    "ROT", "LOT", "CSA", "AFL", "TRA", "EWG", "BEL", "STW", "LMU", "AXY",
    "AWG", "ADY", "ETH", "KQA", "SAA", "RAM", "TUN", "ALK", "PIA", "BIA",
    "MAS", "GIA", "VNL", "HVN", "CEB", "PAL", "AXM", "AIQ", "JST", "VOZ",
    "QFA", "ANZ", "FJA", "NSH", "SAI", "PHS", "SXS", "XAX", "SKW", "ENY",
    "PDT", "JIA", "RPA", "TCX", "MON", "NWG", "DY",
)

CIVILIAN_OPERATORS: tuple[str, ...] = (
    "FLYDUBAI", "FLY DUBAI",
    "EMIRATES", "EMIRATES AIRLINE",
    "ETIHAD", "ETIHAD AIRWAYS",
    "QATAR", "QATAR AIRWAYS",
    "GULF AIR",
    "KUWAIT AIRWAYS",
    "SAUDIA", "SAUDI ARABIAN",
    "MIDDLE EAST AIRLINES", "MEA",
    "TURKISH AIRLINES", "THY",
    "PEGASUS",
    "EGYPTAIR", "EGYPT AIR",
    "EL AL", "ELAL",
    "IRAN AIR",
    "ROYAL JORDANIAN",
    "OMAN AIR",
    "AIR ARABIA",
    "JAZEERA AIRWAYS",
    "FLYNAS", "NASAIR",
    "LUFTHANSA",
    "BRITISH AIRWAYS",
    "AIR FRANCE",
    "KLM",
    "RYANAIR",
    "EASYJET",
    "WIZZ AIR",
    "DELTA", "AMERICAN AIRLINES", "UNITED AIRLINES",
    "SOUTHWEST",
)

CIVILIAN_OPERATOR_KEYWORDS: tuple[str, ...] = (
    "AIRLINES", "AIRWAYS", "AIRLINE", "AIRWAY",
    "AVIATION", "CARGO", "FREIGHT", "EXPRESS",
    "JET", "FLY", "TRAVEL", "TOUR",
    "PRIVATE", "CHARTER", "EXECUTIVE",
    "LEASING", "RENTAL",
)

CATEGORY_LABELS: dict[MilitaryCategory, str] = {
    MilitaryCategory.TANKER: "Tanker/Refueler",
    MilitaryCategory.AWACS: "AWACS/AEW",
    MilitaryCategory.ISR: "ISR/Surveillance",
    MilitaryCategory.TRANSPORT: "Transport",
    MilitaryCategory.FIGHTER: "Fighter/Attack",
    MilitaryCategory.HELICOPTER: "Helicopter",
    MilitaryCategory.TRAINER: "Trainer",
    MilitaryCategory.OTHER: "Military",
}

CATEGORY_COLORS: dict[MilitaryCategory, str] = {
    MilitaryCategory.TANKER: "#f59e0b",
    MilitaryCategory.AWACS: "#8b5cf6",
    MilitaryCategory.ISR: "#06b6d4",
    MilitaryCategory.TRANSPORT: "#22c55e",
    MilitaryCategory.FIGHTER: "#ef4444",
    MilitaryCategory.HELICOPTER: "#3b82f6",
    MilitaryCategory.TRAINER: "#a855f7",
    MilitaryCategory.OTHER: "#6b7280",
}
UNKNOWN_CATEGORY_COLOR = "#dc2626"


def category_label(category: MilitaryCategory | None) -> str:
    if category is None:
        return "Unknown"
    return CATEGORY_LABELS[category]


def category_color(category: MilitaryCategory | None) -> str:
    """Map marker color for a category."""

    if category is None:
        return UNKNOWN_CATEGORY_COLOR
    return CATEGORY_COLORS[category]


__all__ = [
    "CATEGORY_COLORS",
    "CATEGORY_LABELS",
    "CIVILIAN_AIRLINE_PREFIXES",
    "CIVILIAN_OPERATORS",
    "CIVILIAN_OPERATOR_KEYWORDS",
    "HexRange",
    "MILITARY_CALLSIGN_PATTERNS",
    "MILITARY_HEX_RANGES",
    "MILITARY_TYPE_PATTERNS",
    "TRUSTED_HEX_RANGE_COUNTRY",
    "category_color",
    "category_label",
]
