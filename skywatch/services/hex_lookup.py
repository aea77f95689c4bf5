"""Short-lived cache in front of single-aircraft lookups across every source."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from skywatch.config import settings
from skywatch.errors import SourceUnavailableError
from skywatch.ingestors.adsb import ADSBSourceAdapter
from skywatch.models.aircraft import FusedAircraftRecord, RawAircraftRecord
from skywatch.services.fusion import merge_records

logger = logging.getLogger("skywatch.services.hex_lookup")


@dataclass(frozen=True)
class HexLookupCacheEntry:
    record: FusedAircraftRecord
    created_at: float
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        return now - self.created_at < self.ttl_seconds


class HexLookupCache:
    """Fan a hex lookup out to every source and remember the merged answer.

    Expired entries are pruned on every write and the map never holds more
    than ``max_entries`` records; the oldest entries are evicted first.
    """

    def __init__(
        self,
        adapters: Sequence[ADSBSourceAdapter],
        *,
        ttl_seconds: float | None = None,
        timeout: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.adapters = sorted(
            (adapter for adapter in adapters if adapter.source.enabled and adapter.source.hex_endpoint),
            key=lambda adapter: adapter.priority,
            reverse=True,
        )
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.hex_cache_ttl_seconds
        self.timeout = timeout or settings.hex_lookup_timeout
        self.max_entries = max(1, max_entries or settings.hex_cache_max_entries)
        self._clock = clock
        self._entries: dict[str, HexLookupCacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def lookup(self, hex_code: str) -> Optional[FusedAircraftRecord]:
        key = hex_code.strip().upper()
        if not key.lstrip("~"):
            return None

        entry = self._entries.get(key)
        if entry is not None:
            if entry.is_fresh(self._clock()):
                logger.debug("Hex lookup cache hit for %s", key)
                return entry.record
            del self._entries[key]

        results = await asyncio.gather(
            *(adapter.fetch_hex(key, timeout=self.timeout) for adapter in self.adapters),
            return_exceptions=True,
        )

        collected: list[RawAircraftRecord] = []
        for adapter, result in zip(self.adapters, results):
            if isinstance(result, SourceUnavailableError):
                logger.warning("Hex lookup for %s failed on %s: %s", key, adapter.name, result.reason)
                continue
            if isinstance(result, Exception):
                logger.warning("Hex lookup for %s errored on %s: %s", key, adapter.name, result)
                continue
            if isinstance(result, BaseException):
                raise result
            collected.extend(record for record in result if record.identifier == key)

        merged = merge_records(collected)
        if not merged:
            return None

        record = merged[0]
        self._store(key, record)
        return record

    def _store(self, key: str, record: FusedAircraftRecord) -> None:
        now = self._clock()
        for stale in [name for name, entry in self._entries.items() if not entry.is_fresh(now)]:
            del self._entries[stale]
        # dicts keep insertion order, so the first key is the oldest write
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = HexLookupCacheEntry(record, now, self.ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["HexLookupCache", "HexLookupCacheEntry"]
