"""Static knowledge about common military airframes, keyed by ICAO type code."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from skywatch.models.aircraft import MilitaryCategory


@dataclass(frozen=True)
class AircraftPrior:
    """Display name and role of a known airframe."""

    type_code: str
    name: str
    category: MilitaryCategory
    description: str
    operators: tuple[str, ...] = field(default_factory=tuple)


def _prior(type_code, name, category, description, *operators) -> AircraftPrior:
    return AircraftPrior(type_code, name, category, description, tuple(operators))


_T, _A, _I, _F = (
    MilitaryCategory.TANKER,
    MilitaryCategory.AWACS,
    MilitaryCategory.ISR,
    MilitaryCategory.FIGHTER,
)
_C, _H, _TR, _O = (
    MilitaryCategory.TRANSPORT,
    MilitaryCategory.HELICOPTER,
    MilitaryCategory.TRAINER,
    MilitaryCategory.OTHER,
)

# Order matters for prefix lookups: the first key that prefixes the query wins.
AIRCRAFT_PRIORS: dict[str, AircraftPrior] = {
    prior.type_code: prior
    for prior in (
        _prior("KC135", "KC-135 Stratotanker", _T, "Primary USAF aerial refueling aircraft", "USAF", "ANG", "AFRC"),
        _prior("KC10", "KC-10 Extender", _T, "USAF aerial refueling and cargo aircraft", "USAF"),
        _prior("KC46", "KC-46A Pegasus", _T, "USAF next-generation aerial refueling tanker", "USAF"),
        _prior("E3TF", "E-3 Sentry AWACS", _A, "Airborne Warning and Control System", "USAF", "NATO", "RSAF"),
        _prior("E7WW", "E-7 Wedgetail", _A, "Boeing 737 AEW&C aircraft", "RAAF", "TuAF"),
        _prior("RC135", "RC-135 Rivet Joint", _I, "SIGINT reconnaissance aircraft", "USAF", "RAF"),
        _prior("RQ4", "RQ-4 Global Hawk", _I, "High-altitude ISR UAV", "USAF"),
        _prior("MQ4C", "MQ-4C Triton", _I, "Maritime surveillance UAV based on Global Hawk platform", "USN"),
        _prior("P8", "P-8A Poseidon", _I, "Maritime patrol and anti-submarine warfare aircraft", "USN", "RAF"),
        _prior("MQ9", "MQ-9 Reaper", _I, "Armed reconnaissance UAV", "USAF", "RAF"),
        _prior("E8", "E-8 JSTARS", _I, "Joint Surveillance Target Attack Radar System", "USAF"),
        _prior("EP3", "EP-3E Aries II", _I, "SIGINT reconnaissance aircraft", "USN"),
        _prior("U2", "U-2 Dragon Lady", _I, "High-altitude reconnaissance aircraft", "USAF"),
        _prior("F15", "F-15 Eagle/Strike Eagle", _F, "Air superiority / strike fighter", "USAF", "IAF", "RSAF"),
        _prior("F16", "F-16 Fighting Falcon", _F, "Multi-role fighter", "USAF", "IAF", "TuAF"),
        _prior("F22", "F-22 Raptor", _F, "Stealth air superiority fighter", "USAF"),
        _prior("F35", "F-35 Lightning II", _F, "Multi-role stealth fighter", "USAF", "USN", "USMC", "IAF"),
        _prior("F18", "F/A-18 Hornet/Super Hornet", _F, "Multi-role carrier-based fighter", "USN", "USMC"),
        _prior("A10", "A-10 Thunderbolt II", _F, "Close air support attack aircraft", "USAF"),
        _prior("B52", "B-52 Stratofortress", _O, "Strategic bomber", "USAF"),
        _prior("B1B", "B-1B Lancer", _O, "Supersonic strategic bomber", "USAF"),
        _prior("B2", "B-2 Spirit", _O, "Stealth strategic bomber", "USAF"),
        _prior("C5", "C-5 Galaxy", _C, "Heavy strategic airlift", "USAF"),
        _prior("C17", "C-17 Globemaster III", _C, "Strategic and tactical airlift", "USAF", "RAF", "QEAF"),
        _prior("C130", "C-130 Hercules", _C, "Tactical airlift", "USAF"),
        _prior("A400", "A400M Atlas", _C, "European tactical/strategic airlift", "Luftwaffe", "RAF", "FAF"),
        _prior("UH60", "UH-60 Black Hawk", _H, "Utility helicopter", "US Army"),
        _prior("AH64", "AH-64 Apache", _H, "Attack helicopter", "US Army", "IAF"),
        _prior("CH47", "CH-47 Chinook", _H, "Heavy-lift cargo helicopter", "US Army", "RAF"),
        _prior("V22", "V-22 Osprey", _H, "Tiltrotor multi-mission aircraft", "USMC", "USAF"),
        _prior("MH60", "MH-60 Seahawk", _H, "Naval multi-mission helicopter", "USN"),
        _prior("T38", "T-38 Talon", _TR, "Supersonic jet trainer", "USAF"),
        _prior("T6", "T-6 Texan II", _TR, "Primary trainer aircraft", "USAF", "USN"),
    )
}

_SEPARATORS = re.compile(r"[-\s]")


def normalize_type_code(type_code: str) -> str:
    return _SEPARATORS.sub("", type_code).upper()


def get_aircraft_prior(type_code: str | None) -> AircraftPrior | None:
    """Look up an airframe by exact code, then normalized code, then prefix.

    Prefix matching works in both directions so ``F-15E`` finds ``F15`` and
    ``MQ-4`` finds ``MQ4C``.
    """

    if not type_code:
        return None

    if type_code in AIRCRAFT_PRIORS:
        return AIRCRAFT_PRIORS[type_code]

    normalized = normalize_type_code(type_code)
    if not normalized:
        return None
    if normalized in AIRCRAFT_PRIORS:
        return AIRCRAFT_PRIORS[normalized]

    for key, prior in AIRCRAFT_PRIORS.items():
        normalized_key = normalize_type_code(key)
        if normalized.startswith(normalized_key) or normalized_key.startswith(normalized):
            return prior

    return None


__all__ = ["AIRCRAFT_PRIORS", "AircraftPrior", "get_aircraft_prior", "normalize_type_code"]
