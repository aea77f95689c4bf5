"""Rate-limited ADS-B source adapter for readsb-compatible JSON feeds."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from skywatch.config import SourceConfig, settings
from skywatch.errors import SourceUnavailableError
from skywatch.models.aircraft import RawAircraftRecord

logger = logging.getLogger("skywatch.ingestors.adsb")

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[Any]]


class ADSBSourceAdapter:
    """Fetch aircraft from one upstream feed.

    Calls to the same source are serialized and spaced at least
    ``60 / requests_per_minute`` seconds apart. A call that arrives early is
    delayed until its slot opens rather than being dropped.
    """

    def __init__(
        self,
        source: SourceConfig,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.source = source
        self.timeout = timeout or settings.request_timeout
        self.user_agent = user_agent or settings.user_agent
        self.transport = transport
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request: float | None = None

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def priority(self) -> int:
        return self.source.priority

    async def fetch_military(self) -> list[RawAircraftRecord]:
        if not self.source.military_endpoint:
            return []
        return await self.fetch(self.source.military_endpoint)

    async def fetch_area(self, lat: float, lon: float, radius_nm: float) -> list[RawAircraftRecord]:
        if not self.source.area_endpoint:
            return []
        endpoint = self.source.area_endpoint.format(lat=lat, lon=lon, radius=radius_nm)
        return await self.fetch(endpoint)

    async def fetch_hex(self, hex_code: str, *, timeout: float | None = None) -> list[RawAircraftRecord]:
        if not self.source.hex_endpoint:
            return []
        endpoint = self.source.hex_endpoint.format(hex=hex_code.strip().lower())
        return await self.fetch(endpoint, timeout=timeout)

    async def fetch(self, endpoint: str, *, timeout: float | None = None) -> list[RawAircraftRecord]:
        """GET ``endpoint`` on this source and validate the ``ac`` array.

        Raises :class:`SourceUnavailableError` on timeout, transport failure or
        a non-success status. Malformed bodies yield an empty list.
        """

        url = f"{self.source.base_url.rstrip('/')}{endpoint}"
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        async with self._lock:
            await self._wait_for_slot()
            try:
                async with httpx.AsyncClient(
                    timeout=timeout or self.timeout,
                    transport=self.transport,
                    headers=headers,
                ) as client:
                    response = await client.get(url)
            except httpx.TimeoutException as exc:
                raise SourceUnavailableError(self.name, endpoint, "request timed out") from exc
            except httpx.RequestError as exc:
                raise SourceUnavailableError(self.name, endpoint, f"request failed: {exc}") from exc

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SourceUnavailableError(
                self.name,
                endpoint,
                f"HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Failed to parse %s JSON response from %s: %s", self.name, endpoint, exc)
            return []

        entries = payload.get("ac") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            logger.warning("%s response from %s has no aircraft array", self.name, endpoint)
            return []

        records: list[RawAircraftRecord] = []
        for entry in entries:
            record = self._normalize_record(entry)
            if record:
                records.append(record)

        logger.debug("Ingested %s aircraft from %s%s", len(records), self.name, endpoint)
        return records

    async def _wait_for_slot(self) -> None:
        if self._last_request is not None:
            remaining = self.source.min_interval_seconds - (self._clock() - self._last_request)
            if remaining > 0:
                logger.debug("Rate limiting %s for %.2fs", self.name, remaining)
                await self._sleep(remaining)
        self._last_request = self._clock()

    def _normalize_record(self, entry: Any) -> Optional[RawAircraftRecord]:
        if not isinstance(entry, dict):
            return None
        try:
            return RawAircraftRecord.model_validate({**entry, "source": self.name})
        except ValidationError as exc:
            logger.debug("Skipping invalid %s aircraft entry %r: %s", self.name, entry.get("hex"), exc)
            return None


__all__ = ["ADSBSourceAdapter"]
