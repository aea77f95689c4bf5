"""Static domain knowledge: identification tables and airframe priors."""

from .aircraft_priors import AIRCRAFT_PRIORS, AircraftPrior, get_aircraft_prior
from .military import (
    MILITARY_HEX_RANGES,
    TRUSTED_HEX_RANGE_COUNTRY,
    HexRange,
    category_color,
    category_label,
)

__all__ = [
    "AIRCRAFT_PRIORS",
    "AircraftPrior",
    "HexRange",
    "MILITARY_HEX_RANGES",
    "TRUSTED_HEX_RANGE_COUNTRY",
    "category_color",
    "category_label",
    "get_aircraft_prior",
]
