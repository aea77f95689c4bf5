"""Error types raised inside the SkyWatch core."""

from __future__ import annotations


class SkyWatchError(Exception):
    """Base class for SkyWatch errors."""


class SourceUnavailableError(SkyWatchError):
    """A feed call timed out, failed at the network level or returned a non-success status."""

    def __init__(self, source: str, endpoint: str, reason: str, status_code: int | None = None):
        super().__init__(f"{source}{endpoint}: {reason}")
        self.source = source
        self.endpoint = endpoint
        self.reason = reason
        self.status_code = status_code


class DeliveryError(SkyWatchError):
    """A storage or notification handoff failed."""


__all__ = ["DeliveryError", "SkyWatchError", "SourceUnavailableError"]
