"""Merge raw records from every feed into one record per aircraft."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from skywatch.config import FocusArea, RegionBounds, SourceConfig
from skywatch.errors import SourceUnavailableError
from skywatch.ingestors.adsb import ADSBSourceAdapter
from skywatch.models.aircraft import MERGE_SCALAR_FIELDS, FusedAircraftRecord, RawAircraftRecord

logger = logging.getLogger("skywatch.services.fusion")


@dataclass
class SourceOutcome:
    """Result of one adapter call within a pass."""

    source: str
    endpoint: str
    ok: bool
    records: int = 0
    error: Optional[str] = None


@dataclass
class FusionResult:
    records: list[FusedAircraftRecord] = field(default_factory=list)
    outcomes: list[SourceOutcome] = field(default_factory=list)

    @property
    def raw_count(self) -> int:
        return sum(outcome.records for outcome in self.outcomes)


def _min_defined(first: Optional[float], second: Optional[float]) -> Optional[float]:
    if first is None:
        return second
    if second is None:
        return first
    return min(first, second)


def merge_into(existing: FusedAircraftRecord, incoming: RawAircraftRecord) -> FusedAircraftRecord:
    """Fold ``incoming`` into ``existing``.

    Scalars keep the accumulated value when it is defined. Freshness counters
    keep the smallest defined value and the military flag is OR'd.
    """

    updates: dict[str, object] = {
        name: getattr(incoming, name)
        for name in MERGE_SCALAR_FIELDS
        if getattr(existing, name) is None and getattr(incoming, name) is not None
    }
    updates["seen"] = _min_defined(existing.seen, incoming.seen)
    updates["seen_pos"] = _min_defined(existing.seen_pos, incoming.seen_pos)
    updates["military_flag"] = existing.military_flag or incoming.military_flag
    if incoming.source not in existing.sources:
        updates["sources"] = [*existing.sources, incoming.source]
    return existing.model_copy(update=updates)


def merge_records(records: Iterable[RawAircraftRecord]) -> list[FusedAircraftRecord]:
    """Merge records keyed by identifier, preserving first-seen order."""

    merged: dict[str, FusedAircraftRecord] = {}
    for record in records:
        key = record.identifier.upper()
        current = merged.get(key)
        if current is None:
            merged[key] = FusedAircraftRecord.from_raw(record)
        else:
            merged[key] = merge_into(current, record)
    return list(merged.values())


def filter_to_region(
    records: Iterable[FusedAircraftRecord], bounds: RegionBounds
) -> list[FusedAircraftRecord]:
    """Keep records positioned inside ``bounds``; unpositioned records are dropped."""

    return [record for record in records if bounds.contains(record.latitude, record.longitude)]


FetchCall = Callable[[], Awaitable[list[RawAircraftRecord]]]


class FusionAggregator:
    """Run every adapter call for a pass and fuse the results."""

    def __init__(
        self,
        adapters: Sequence[ADSBSourceAdapter],
        *,
        focus_areas: Sequence[FocusArea] = (),
        sources: Sequence[SourceConfig] | None = None,
    ) -> None:
        # sorted() is stable, so equal priorities keep configuration order
        self.adapters = sorted(
            (adapter for adapter in adapters if adapter.source.enabled),
            key=lambda adapter: adapter.priority,
            reverse=True,
        )
        self.focus_areas = list(focus_areas)
        self.sources = list(sources) if sources is not None else [a.source for a in adapters]

    @property
    def primary(self) -> Optional[ADSBSourceAdapter]:
        return self.adapters[0] if self.adapters else None

    def _planned_calls(self) -> list[tuple[ADSBSourceAdapter, str, FetchCall]]:
        calls: list[tuple[ADSBSourceAdapter, str, FetchCall]] = []
        for adapter in self.adapters:
            if adapter.source.military_endpoint:
                calls.append((adapter, adapter.source.military_endpoint, adapter.fetch_military))

        primary = self.primary
        if primary is not None and primary.source.area_endpoint:
            for area in self.focus_areas:

                def area_call(area: FocusArea = area) -> Awaitable[list[RawAircraftRecord]]:
                    return primary.fetch_area(area.lat, area.lon, area.radius_nm)

                calls.append((primary, f"area:{area.name}", area_call))
        return calls

    async def fetch_military_aircraft(self) -> FusionResult:
        """Query every source and merge the answers.

        Results are folded in call-issue order regardless of which call
        finished first, so the fused output is reproducible for a given set
        of responses.
        """

        calls = self._planned_calls()
        results = await asyncio.gather(*(call() for _, _, call in calls), return_exceptions=True)

        collected: list[RawAircraftRecord] = []
        outcomes: list[SourceOutcome] = []
        for (adapter, label, _), result in zip(calls, results):
            if isinstance(result, SourceUnavailableError):
                logger.warning("Source %s failed for %s: %s", adapter.name, label, result.reason)
                outcomes.append(SourceOutcome(adapter.name, label, ok=False, error=result.reason))
                continue
            if isinstance(result, Exception):
                logger.warning("Unexpected error from %s for %s: %s", adapter.name, label, result)
                outcomes.append(SourceOutcome(adapter.name, label, ok=False, error=str(result)))
                continue
            if isinstance(result, BaseException):
                raise result
            outcomes.append(SourceOutcome(adapter.name, label, ok=True, records=len(result)))
            collected.extend(result)

        fused = merge_records(collected)
        succeeded = sum(1 for outcome in outcomes if outcome.ok)
        logger.info(
            "Fused %s aircraft from %s raw records (%s/%s calls ok)",
            len(fused),
            len(collected),
            succeeded,
            len(outcomes),
        )
        return FusionResult(records=fused, outcomes=outcomes)

    def source_stats(self) -> list[dict[str, object]]:
        return [
            {
                "name": source.name,
                "enabled": source.enabled,
                "priority": source.priority,
                "requests_per_minute": source.requests_per_minute,
            }
            for source in self.sources
        ]


__all__ = [
    "FusionAggregator",
    "FusionResult",
    "SourceOutcome",
    "filter_to_region",
    "merge_into",
    "merge_records",
]
