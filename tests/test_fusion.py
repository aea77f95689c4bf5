import asyncio

import httpx
import pytest

from skywatch.config import FocusArea, RegionBounds, SourceConfig
from skywatch.ingestors.adsb import ADSBSourceAdapter
from skywatch.models.aircraft import FusedAircraftRecord, RawAircraftRecord
from skywatch.services.fusion import FusionAggregator, filter_to_region, merge_into, merge_records


async def _no_sleep(_seconds: float) -> None:
    return None


def _raw(hex_code: str, source: str, **fields) -> RawAircraftRecord:
    return RawAircraftRecord(identifier=hex_code, source=source, **fields)


def _adapters(handler, *sources: SourceConfig) -> list[ADSBSourceAdapter]:
    transport = httpx.MockTransport(handler)
    return [ADSBSourceAdapter(source, transport=transport, sleep=_no_sleep) for source in sources]


def test_merge_takes_minimum_freshness_and_or_of_flag():
    first = FusedAircraftRecord.from_raw(_raw("AE1234", "a", seen=5.0, seen_pos=3.0, altitude_baro=20000))
    second = _raw("ae1234", "b", seen=2.0, callsign="RCH123", altitude_baro=21000, military_flag=True)

    merged = merge_into(first, second)

    assert merged.seen == 2.0
    assert merged.seen_pos == 3.0
    assert merged.altitude_baro == 20000
    assert merged.callsign == "RCH123"
    assert merged.military_flag is True
    assert merged.sources == ["a", "b"]


def test_merge_freshness_is_symmetric():
    left = _raw("AE1234", "a", seen=1.5, seen_pos=9.0)
    right = _raw("AE1234", "b", seen=4.0, seen_pos=0.5)

    forward = merge_records([left, right])[0]
    backward = merge_records([right, left])[0]

    assert (forward.seen, forward.seen_pos) == (1.5, 0.5)
    assert (backward.seen, backward.seen_pos) == (1.5, 0.5)


def test_merge_records_deduplicates_sources_and_keeps_order():
    records = [
        _raw("AE0001", "a"),
        _raw("43C001", "a"),
        _raw("ae0001", "b"),
        _raw("AE0001", "a", squawk="7700"),
    ]

    merged = merge_records(records)

    assert [record.identifier for record in merged] == ["AE0001", "43C001"]
    assert merged[0].sources == ["a", "b"]
    assert merged[0].squawk == "7700"


def test_merge_keeps_non_icao_address_apart_from_icao_twin():
    merged = merge_records([_raw("~adf900", "a"), _raw("adf900", "b")])

    assert [record.identifier for record in merged] == ["~ADF900", "ADF900"]
    assert [record.sources for record in merged] == [["a"], ["b"]]


def test_filter_to_region_is_inclusive_and_drops_unpositioned():
    bounds = RegionBounds(min_lat=10, max_lat=42, min_lon=24, max_lon=63)
    records = merge_records(
        [
            _raw("000001", "a", latitude=33.5, longitude=35.5),
            _raw("000002", "a", latitude=42.0, longitude=63.0),
            _raw("000003", "a", latitude=51.5, longitude=-0.1),
            _raw("000004", "a"),
        ]
    )

    kept = filter_to_region(records, bounds)

    assert [record.identifier for record in kept] == ["000001", "000002"]


@pytest.mark.anyio
async def test_aggregator_folds_in_priority_order_regardless_of_completion():
    primary = SourceConfig(name="primary", base_url="https://primary.test", priority=3)
    backup = SourceConfig(name="backup", base_url="https://backup.test", priority=1)

    async def handler(request: httpx.Request):
        if request.url.host == "primary.test":
            await asyncio.sleep(0.05)
            return httpx.Response(200, json={"ac": [{"hex": "ae1234", "alt_baro": 30000, "seen": 4}]})
        return httpx.Response(
            200, json={"ac": [{"hex": "AE1234", "alt_baro": 29000, "flight": "RCH1", "seen": 1}]}
        )

    aggregator = FusionAggregator(_adapters(handler, backup, primary))

    result = await aggregator.fetch_military_aircraft()

    assert len(result.records) == 1
    record = result.records[0]
    assert record.altitude_baro == 30000
    assert record.callsign == "RCH1"
    assert record.seen == 1
    assert record.sources == ["primary", "backup"]
    assert [outcome.source for outcome in result.outcomes] == ["primary", "backup"]


@pytest.mark.anyio
async def test_aggregator_isolates_failed_sources(caplog):
    good = SourceConfig(name="good", base_url="https://good.test", priority=2)
    bad = SourceConfig(name="bad", base_url="https://bad.test", priority=3)

    def handler(request: httpx.Request):
        if request.url.host == "bad.test":
            return httpx.Response(500, text="boom")
        return httpx.Response(200, json={"ac": [{"hex": "ae0001"}, {"hex": "ae0002"}]})

    aggregator = FusionAggregator(_adapters(handler, good, bad))

    with caplog.at_level("WARNING"):
        result = await aggregator.fetch_military_aircraft()

    assert [record.identifier for record in result.records] == ["AE0001", "AE0002"]
    outcomes = {outcome.source: outcome for outcome in result.outcomes}
    assert outcomes["bad"].ok is False
    assert outcomes["bad"].records == 0
    assert outcomes["good"].records == 2
    assert "Source bad failed" in caplog.text


@pytest.mark.anyio
async def test_aggregator_completes_with_zero_records_when_everything_fails():
    sources = [
        SourceConfig(name="one", base_url="https://one.test"),
        SourceConfig(name="two", base_url="https://two.test"),
    ]

    def handler(request: httpx.Request):
        raise httpx.ConnectError("down", request=request)

    result = await FusionAggregator(_adapters(handler, *sources)).fetch_military_aircraft()

    assert result.records == []
    assert result.raw_count == 0
    assert all(not outcome.ok for outcome in result.outcomes)


@pytest.mark.anyio
async def test_area_queries_only_run_on_primary_source():
    primary = SourceConfig(name="primary", base_url="https://primary.test", priority=3)
    secondary = SourceConfig(name="secondary", base_url="https://secondary.test", priority=2)
    no_area = SourceConfig(
        name="mil-only",
        base_url="https://milonly.test",
        military_endpoint="/aircraft/military",
        area_endpoint=None,
        priority=1,
    )
    requested: list[tuple[str, str]] = []

    def handler(request: httpx.Request):
        requested.append((request.url.host, request.url.path))
        if request.url.path.startswith("/point/"):
            return httpx.Response(200, json={"ac": [{"hex": "738a01", "lat": 32.0, "lon": 35.0}]})
        return httpx.Response(200, json={"ac": []})

    aggregator = FusionAggregator(
        _adapters(handler, primary, secondary, no_area),
        focus_areas=[
            FocusArea(name="Lebanon-Israel", lat=33.5, lon=35.5, radius_nm=150),
            FocusArea(name="Red Sea", lat=20, lon=38, radius_nm=200),
        ],
    )

    result = await aggregator.fetch_military_aircraft()

    area_hosts = {host for host, path in requested if path.startswith("/point/")}
    assert area_hosts == {"primary.test"}
    assert ("milonly.test", "/aircraft/military") in requested
    assert len(requested) == 5
    assert [record.identifier for record in result.records] == ["738A01"]
    assert result.records[0].sources == ["primary"]


def test_source_stats_lists_configured_sources():
    sources = [
        SourceConfig(name="on", base_url="https://on.test", priority=3, requests_per_minute=60),
        SourceConfig(name="off", base_url="https://off.test", enabled=False, priority=1),
    ]
    aggregator = FusionAggregator(_adapters(lambda request: httpx.Response(200), *sources))

    stats = aggregator.source_stats()

    assert [entry["name"] for entry in stats] == ["on", "off"]
    assert stats[1]["enabled"] is False
    assert [adapter.name for adapter in aggregator.adapters] == ["on"]
