"""Wire the fusion core together and run passes end to end."""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from skywatch.config import Settings, settings as default_settings
from skywatch.errors import DeliveryError
from skywatch.ingestors.adsb import ADSBSourceAdapter
from skywatch.models.aircraft import ClassifiedAircraft
from skywatch.models.events import LifecycleEvent
from skywatch.services.classifier import classify, classify_all
from skywatch.services.fusion import FusionAggregator, SourceOutcome, filter_to_region
from skywatch.services.hex_lookup import HexLookupCache
from skywatch.services.lifecycle import LifecycleStateTracker
from skywatch.services.notifications import EventDispatcher, Notifier
from skywatch.services.storage import SqlAlchemyAircraftStore
from skywatch.services.telegram import TelegramNotifier

logger = logging.getLogger("skywatch.services.pipeline")


class AircraftStore(Protocol):
    def upsert_aircraft(self, aircraft: list[ClassifiedAircraft]) -> int:
        ...

    def record_event(self, event: LifecycleEvent) -> None:
        ...

    def load_state(self, identifier: str):
        ...


class PassResult(BaseModel):
    """Counters for one polling pass."""

    fetched: int = Field(0, description="Raw records returned by all calls")
    fused: int = Field(0, description="Distinct aircraft after merging")
    in_region: int = 0
    with_position: int = 0
    military: int = 0
    upserted: int = 0
    events: dict[str, int] = Field(default_factory=dict, description="Event counts by type")
    notified: int = 0
    sources: list[SourceOutcome] = Field(default_factory=list)
    duration_ms: float = 0.0


class SweepResult(BaseModel):
    disappeared: int = 0
    notified: int = 0
    tracked: int = 0


def _count_by_type(events: list[LifecycleEvent]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for event in events:
        counts[event.type.value] = counts.get(event.type.value, 0) + 1
    return counts


class PipelineCoordinator:
    """Own one instance of every component and drive them per pass."""

    def __init__(
        self,
        *,
        aggregator: FusionAggregator,
        tracker: LifecycleStateTracker,
        hex_cache: HexLookupCache,
        dispatcher: EventDispatcher,
        store: Optional[AircraftStore] = None,
        app_settings: Settings | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.tracker = tracker
        self.hex_cache = hex_cache
        self.dispatcher = dispatcher
        self.store = store
        self.settings = app_settings or default_settings

    async def run_pass(self) -> PassResult:
        start = time.perf_counter()
        fusion = await self.aggregator.fetch_military_aircraft()

        classified = classify_all(fusion.records)
        if self.settings.region_filter_enabled:
            kept = {record.identifier for record in filter_to_region(fusion.records, self.settings.region)}
            classified = [item for item in classified if item.identifier in kept]

        military = [item for item in classified if item.classification.is_military]

        # Diff before upserting so the durable fallback still holds last pass's state.
        events: list[LifecycleEvent] = []
        for item in military:
            events.extend(self.tracker.observe(item))

        upserted = 0
        if self.store is not None:
            try:
                upserted = self.store.upsert_aircraft(classified)
            except DeliveryError as exc:
                logger.warning("Aircraft upsert failed; continuing pass: %s", exc)

        summary = await self.dispatcher.dispatch(events)

        result = PassResult(
            fetched=fusion.raw_count,
            fused=len(fusion.records),
            in_region=len(classified),
            with_position=sum(1 for item in classified if item.record.has_position),
            military=len(military),
            upserted=upserted,
            events=_count_by_type(events),
            notified=summary.notified,
            sources=fusion.outcomes,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        logger.info(
            "Pass complete: %s fused, %s in region, %s military, %s events (%.2f ms)",
            result.fused,
            result.in_region,
            result.military,
            len(events),
            result.duration_ms,
        )
        return result

    async def run_sweep(self) -> SweepResult:
        events = self.tracker.sweep_disappeared()
        summary = await self.dispatcher.dispatch(events)
        return SweepResult(
            disappeared=len(events),
            notified=summary.notified,
            tracked=len(self.tracker),
        )

    async def lookup(self, hex_code: str) -> Optional[ClassifiedAircraft]:
        record = await self.hex_cache.lookup(hex_code)
        if record is None:
            return None
        return ClassifiedAircraft(record=record, classification=classify(record))

    def source_stats(self) -> list[dict[str, object]]:
        return self.aggregator.source_stats()


def build_coordinator(
    app_settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    store: Optional[AircraftStore] = None,
    notifier: Optional[Notifier] = None,
) -> PipelineCoordinator:
    """Construct every component once from settings."""

    cfg = app_settings or default_settings
    adapters = [
        ADSBSourceAdapter(
            source,
            timeout=cfg.request_timeout,
            user_agent=cfg.user_agent,
            transport=transport,
        )
        for source in cfg.sources
        if source.enabled
    ]
    store = store if store is not None else SqlAlchemyAircraftStore(
        airborne_threshold_ft=cfg.airborne_altitude_threshold_ft
    )
    notifier = notifier if notifier is not None else TelegramNotifier(
        bot_token=cfg.telegram_bot_token,
        chat_id=cfg.telegram_chat_id,
        enabled=cfg.telegram_enabled,
        api_base=cfg.telegram_api_base,
    )

    return PipelineCoordinator(
        aggregator=FusionAggregator(adapters, focus_areas=cfg.focus_areas, sources=cfg.sources),
        tracker=LifecycleStateTracker(
            store,
            airborne_threshold_ft=cfg.airborne_altitude_threshold_ft,
            disappeared_after_seconds=cfg.disappeared_after_seconds,
        ),
        hex_cache=HexLookupCache(
            adapters,
            ttl_seconds=cfg.hex_cache_ttl_seconds,
            timeout=cfg.hex_lookup_timeout,
            max_entries=cfg.hex_cache_max_entries,
        ),
        dispatcher=EventDispatcher(
            store,
            notifier,
            notify_first_appearance=cfg.notify_first_appearance,
            notify_departure=cfg.notify_departure,
            notify_landing=cfg.notify_landing,
            notify_disappeared=cfg.notify_disappeared,
            timezone_name=cfg.alert_timezone,
            send_timeout=cfg.notify_send_timeout,
        ),
        store=store,
        app_settings=cfg,
    )


__all__ = ["AircraftStore", "PassResult", "PipelineCoordinator", "SweepResult", "build_coordinator"]
