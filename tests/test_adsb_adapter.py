import httpx
import pytest

from skywatch.config import SourceConfig
from skywatch.errors import SourceUnavailableError
from skywatch.ingestors.adsb import ADSBSourceAdapter


async def _no_sleep(_seconds: float) -> None:
    return None


def _adapter(handler, **source_overrides) -> ADSBSourceAdapter:
    source = SourceConfig(name="feed.test", base_url="https://feed.test/v2", **source_overrides)
    return ADSBSourceAdapter(source, transport=httpx.MockTransport(handler), sleep=_no_sleep)


@pytest.mark.anyio
async def test_adapter_parses_readsb_payload():
    payload = {
        "ac": [
            {
                "hex": "ae1234",
                "flight": "RCH123  ",
                "r": "07-7182",
                "t": "C17",
                "desc": "BOEING C-17 Globemaster 3",
                "ownOp": "",
                "lat": 33.5,
                "lon": 35.5,
                "alt_baro": 28000,
                "gs": 431.2,
                "track": 92.4,
                "seen": 0.4,
                "seen_pos": 1.1,
                "mil": True,
                "dbFlags": 1,
            }
        ],
        "total": 1,
    }
    seen_headers = {}

    def handler(request: httpx.Request):
        seen_headers["accept"] = request.headers.get("accept")
        seen_headers["user-agent"] = request.headers.get("user-agent")
        assert request.url.path == "/v2/mil"
        return httpx.Response(200, json=payload)

    records = await _adapter(handler).fetch_military()

    assert len(records) == 1
    record = records[0]
    assert record.identifier == "AE1234"
    assert record.callsign == "RCH123"
    assert record.type_code == "C17"
    assert record.operator is None
    assert record.altitude_baro == 28000
    assert record.military_flag is True
    assert record.source == "feed.test"
    assert seen_headers["accept"] == "application/json"
    assert seen_headers["user-agent"]


@pytest.mark.anyio
async def test_adapter_keeps_ground_marker_and_drops_invalid_entries():
    payload = {
        "ac": [
            {"hex": "~4b1805", "alt_baro": "ground", "lat": 32.0, "lon": 34.9},
            {"flight": "NOHEX1"},
            {"hex": "  "},
            "not-an-object",
        ]
    }

    def handler(request: httpx.Request):
        return httpx.Response(200, json=payload)

    records = await _adapter(handler).fetch("/mil")

    assert [record.identifier for record in records] == ["~4B1805"]
    assert records[0].is_icao is False
    assert records[0].altitude_baro == "ground"
    assert records[0].is_on_ground(500)


@pytest.mark.anyio
async def test_adapter_nulls_malformed_optional_fields_instead_of_dropping():
    payload = {
        "ac": [
            {
                "hex": "738a12",
                "flight": "IAF101",
                "lat": "n/a",
                "lon": 34.8,
                "alt_baro": "unknown",
                "gs": "fast",
                "seen": 2,
            }
        ]
    }

    def handler(request: httpx.Request):
        return httpx.Response(200, json=payload)

    records = await _adapter(handler).fetch("/mil")

    assert len(records) == 1
    record = records[0]
    assert record.identifier == "738A12"
    assert record.callsign == "IAF101"
    assert record.latitude is None
    assert record.longitude == 34.8
    assert record.altitude_baro is None
    assert record.ground_speed is None
    assert record.seen == 2
    assert record.has_position is False


@pytest.mark.anyio
async def test_adapter_reads_military_bit_from_db_flags():
    payload = {
        "ac": [
            {"hex": "ae0001", "dbFlags": 1},
            {"hex": "ae0002", "dbFlags": 8},
            {"hex": "ae0003", "mil": "false", "dbFlags": 1},
            {"hex": "ae0004", "mil": "true"},
        ]
    }

    def handler(request: httpx.Request):
        return httpx.Response(200, json=payload)

    records = await _adapter(handler).fetch("/mil")

    assert [record.military_flag for record in records] == [True, False, False, True]


@pytest.mark.anyio
async def test_adapter_returns_empty_for_non_json(caplog):
    def handler(request: httpx.Request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with caplog.at_level("WARNING"):
        records = await _adapter(handler).fetch_military()

    assert records == []
    assert "Failed to parse" in caplog.text


@pytest.mark.anyio
async def test_adapter_returns_empty_without_aircraft_array(caplog):
    def handler(request: httpx.Request):
        return httpx.Response(200, json={"msg": "No error", "total": 0})

    with caplog.at_level("WARNING"):
        records = await _adapter(handler).fetch_military()

    assert records == []
    assert "no aircraft array" in caplog.text


@pytest.mark.anyio
async def test_adapter_raises_on_error_status():
    def handler(request: httpx.Request):
        return httpx.Response(503, text="unavailable")

    with pytest.raises(SourceUnavailableError) as excinfo:
        await _adapter(handler).fetch_military()

    assert excinfo.value.status_code == 503
    assert excinfo.value.source == "feed.test"


@pytest.mark.anyio
async def test_adapter_raises_on_timeout():
    def handler(request: httpx.Request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(SourceUnavailableError) as excinfo:
        await _adapter(handler).fetch_military()

    assert "timed out" in excinfo.value.reason


@pytest.mark.anyio
async def test_adapter_raises_on_network_error():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SourceUnavailableError):
        await _adapter(handler).fetch_military()


@pytest.mark.anyio
async def test_adapter_builds_area_and_hex_paths():
    paths = []

    def handler(request: httpx.Request):
        paths.append(request.url.path)
        return httpx.Response(200, json={"ac": []})

    adapter = _adapter(handler)
    await adapter.fetch_area(33.5, 35.5, 150)
    await adapter.fetch_hex("AE1234")

    assert paths == ["/v2/point/33.5/35.5/150", "/v2/hex/ae1234"]


@pytest.mark.anyio
async def test_adapter_skips_missing_endpoints():
    def handler(request: httpx.Request):  # pragma: no cover - must not be called
        raise AssertionError("unexpected request")

    adapter = _adapter(handler, military_endpoint=None, area_endpoint=None, hex_endpoint=None)

    assert await adapter.fetch_military() == []
    assert await adapter.fetch_area(0, 0, 10) == []
    assert await adapter.fetch_hex("AE1234") == []


@pytest.mark.anyio
async def test_adapter_delays_back_to_back_calls_instead_of_dropping():
    now = [100.0]
    sleeps: list[float] = []
    request_count = 0

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        now[0] += seconds

    def handler(request: httpx.Request):
        nonlocal request_count
        request_count += 1
        return httpx.Response(200, json={"ac": [{"hex": "ae0001"}]})

    source = SourceConfig(name="feed.test", base_url="https://feed.test/v2", requests_per_minute=60)
    adapter = ADSBSourceAdapter(
        source,
        transport=httpx.MockTransport(handler),
        clock=lambda: now[0],
        sleep=fake_sleep,
    )

    first = await adapter.fetch_military()
    now[0] += 0.25
    second = await adapter.fetch_military()

    assert sleeps == [pytest.approx(0.75)]
    assert request_count == 2
    assert len(first) == len(second) == 1


@pytest.mark.anyio
async def test_adapter_does_not_wait_once_interval_has_elapsed():
    now = [0.0]
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def handler(request: httpx.Request):
        return httpx.Response(200, json={"ac": []})

    source = SourceConfig(name="slow.test", base_url="https://slow.test", requests_per_minute=30)
    adapter = ADSBSourceAdapter(
        source, transport=httpx.MockTransport(handler), clock=lambda: now[0], sleep=fake_sleep
    )

    await adapter.fetch_military()
    now[0] += 2.5
    await adapter.fetch_military()

    assert sleeps == []
