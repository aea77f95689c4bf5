from datetime import datetime, timedelta, timezone

import httpx
import pytest

from skywatch.config import Settings, SourceConfig
from skywatch.errors import DeliveryError
from skywatch.models.aircraft import MilitaryCategory
from skywatch.models.notifications import NotificationMessage
from skywatch.services.lifecycle import LifecycleStateTracker
from skywatch.services.pipeline import build_coordinator

PRIMARY_AC = [
    {"hex": "ae1234", "flight": "RCH1", "t": "C17", "lat": 33.5, "lon": 35.5, "alt_baro": 25000, "seen": 2},
    {"hex": "4b1805", "flight": "THY4AB", "t": "A21N", "mil": True, "lat": 41.0, "lon": 29.0, "alt_baro": 36000},
    {"hex": "ae5555", "t": "KC135", "lat": 51.5, "lon": -0.1, "alt_baro": 28000},
]
SECONDARY_AC = [
    {"hex": "AE1234", "r": "07-7182", "seen": 1},
    {"hex": "adf7c8", "lat": 25.1, "lon": 51.3, "alt_baro": "ground"},
]


class FakeStore:
    def __init__(self, fail_upsert: bool = False):
        self.fail_upsert = fail_upsert
        self.upserts: list[list] = []
        self.events: list = []

    def upsert_aircraft(self, aircraft):
        if self.fail_upsert:
            raise DeliveryError("database locked")
        self.upserts.append(list(aircraft))
        return len(self.upserts[-1])

    def record_event(self, event):
        self.events.append(event)

    def load_state(self, identifier):
        return None


class FakeNotifier:
    def __init__(self):
        self.messages: list[NotificationMessage] = []

    async def send(self, message: NotificationMessage) -> bool:
        self.messages.append(message)
        return True


def _handler(request: httpx.Request):
    if request.url.host == "primary.test":
        return httpx.Response(200, json={"ac": PRIMARY_AC, "total": len(PRIMARY_AC)})
    if request.url.host == "secondary.test":
        return httpx.Response(200, json={"ac": SECONDARY_AC, "total": len(SECONDARY_AC)})
    return httpx.Response(404)


def _settings(**overrides) -> Settings:
    values = dict(
        sources=[
            SourceConfig(name="primary", base_url="https://primary.test/v2", priority=3, requests_per_minute=6000),
            SourceConfig(name="secondary", base_url="https://secondary.test/v2", priority=2, requests_per_minute=6000),
            SourceConfig(name="disabled", base_url="https://disabled.test", enabled=False),
        ],
        focus_areas=[],
        region_filter_enabled=True,
        telegram_enabled=False,
        notify_first_appearance=True,
        notify_departure=True,
        notify_landing=False,
        notify_disappeared=True,
        alert_timezone="UTC",
        airborne_altitude_threshold_ft=500,
        disappeared_after_seconds=600,
    )
    values.update(overrides)
    return Settings(**values)


def _coordinator(store=None, notifier=None, **overrides):
    store = store or FakeStore()
    notifier = notifier or FakeNotifier()
    coordinator = build_coordinator(
        _settings(**overrides),
        transport=httpx.MockTransport(_handler),
        store=store,
        notifier=notifier,
    )
    return coordinator, store, notifier


@pytest.mark.anyio
async def test_pass_fuses_classifies_filters_and_emits_events():
    coordinator, store, notifier = _coordinator()

    result = await coordinator.run_pass()

    assert result.fetched == 5
    assert result.fused == 4
    assert result.in_region == 3
    assert result.military == 2
    assert result.upserted == 3
    assert result.events == {"first_appearance": 2}
    assert result.notified == 2
    assert [outcome.source for outcome in result.sources] == ["primary", "secondary"]

    upserted = {item.identifier: item for item in store.upserts[0]}
    assert set(upserted) == {"AE1234", "4B1805", "ADF7C8"}
    assert upserted["4B1805"].classification.is_military is False
    assert upserted["AE1234"].record.registration == "07-7182"
    assert upserted["AE1234"].record.seen == 1
    assert upserted["ADF7C8"].classification.country == "USA"
    assert {event.identifier for event in store.events} == {"AE1234", "ADF7C8"}
    assert all(message.title == "NEW AIRCRAFT DETECTED" for message in notifier.messages)


@pytest.mark.anyio
async def test_second_pass_with_unchanged_state_is_quiet():
    coordinator, store, notifier = _coordinator()

    await coordinator.run_pass()
    second = await coordinator.run_pass()

    assert second.events == {}
    assert len(store.events) == 2
    assert len(notifier.messages) == 2


@pytest.mark.anyio
async def test_region_filter_can_be_disabled():
    coordinator, _, _ = _coordinator(region_filter_enabled=False)

    result = await coordinator.run_pass()

    assert result.in_region == 4
    assert result.military == 3


@pytest.mark.anyio
async def test_storage_failure_does_not_block_events(caplog):
    coordinator, store, notifier = _coordinator(store=FakeStore(fail_upsert=True))

    with caplog.at_level("WARNING"):
        result = await coordinator.run_pass()

    assert result.upserted == 0
    assert result.events == {"first_appearance": 2}
    assert len(notifier.messages) == 2
    assert "Aircraft upsert failed" in caplog.text


@pytest.mark.anyio
async def test_sweep_reports_disappeared_aircraft():
    now = [datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)]
    coordinator, store, notifier = _coordinator()
    coordinator.tracker = LifecycleStateTracker(
        store, airborne_threshold_ft=500, disappeared_after_seconds=600, clock=lambda: now[0]
    )

    await coordinator.run_pass()
    now[0] += timedelta(minutes=11)
    sweep = await coordinator.run_sweep()

    assert sweep.disappeared == 2
    assert sweep.notified == 2
    assert sweep.tracked == 0
    assert notifier.messages[-1].title == "AIRCRAFT SIGNAL LOST"
    assert [event.type.value for event in store.events[-2:]] == ["disappeared", "disappeared"]


@pytest.mark.anyio
async def test_lookup_classifies_merged_record():
    coordinator, _, _ = _coordinator()

    found = await coordinator.lookup("ae1234")

    assert found is not None
    assert found.classification.is_military is True
    assert found.classification.category == MilitaryCategory.TRANSPORT
    assert found.record.sources == ["primary", "secondary"]
