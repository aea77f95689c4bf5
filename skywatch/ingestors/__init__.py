"""Feed ingestors."""

from .adsb import ADSBSourceAdapter

__all__ = ["ADSBSourceAdapter"]
