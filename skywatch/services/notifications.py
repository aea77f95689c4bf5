"""Turn lifecycle events into notification messages and hand them off."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from html import escape
from typing import Iterable, Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from skywatch.config import settings
from skywatch.domain.aircraft_priors import get_aircraft_prior
from skywatch.domain.military import category_label
from skywatch.models.events import LifecycleEvent, LifecycleEventType
from skywatch.models.notifications import NotificationLink, NotificationMessage
from skywatch.services.lifecycle import format_location

logger = logging.getLogger("skywatch.services.notifications")

HEADING_DIRECTIONS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

EVENT_MARKERS: dict[LifecycleEventType, tuple[str, str]] = {
    LifecycleEventType.FIRST_APPEARANCE: ("🆕", "NEW AIRCRAFT DETECTED"),
    LifecycleEventType.DEPARTURE: ("🛫", "AIRCRAFT DEPARTURE"),
    LifecycleEventType.LANDING: ("🛬", "AIRCRAFT LANDING"),
    LifecycleEventType.DISAPPEARED: ("📡", "AIRCRAFT SIGNAL LOST"),
}

EVENT_TITLES: dict[LifecycleEventType, str] = {
    LifecycleEventType.FIRST_APPEARANCE: "New Aircraft Detected",
    LifecycleEventType.DEPARTURE: "Aircraft Departed",
    LifecycleEventType.LANDING: "Aircraft Landed",
    LifecycleEventType.DISAPPEARED: "Aircraft Signal Lost",
}


class EventStore(Protocol):
    def record_event(self, event: LifecycleEvent) -> None:
        ...


class Notifier(Protocol):
    async def send(self, message: NotificationMessage) -> bool:
        ...


def heading_direction(track: float) -> str:
    """16-point compass direction for a track in degrees."""

    return HEADING_DIRECTIONS[math.floor(track / 22.5 + 0.5) % 16]


def event_severity(event: LifecycleEvent) -> str:
    return "medium" if event.type == LifecycleEventType.FIRST_APPEARANCE else "low"


def event_title(event: LifecycleEvent) -> str:
    subject = event.snapshot.callsign or event.identifier
    return f"{EVENT_TITLES[event.type]}: {subject}"


def resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown alert timezone %r, falling back to UTC", name)
        return timezone.utc


def _feet(value: Optional[float]) -> str:
    return f"{value:,.0f}" if value is not None else "Unknown"


def _status_line(event: LifecycleEvent) -> str:
    snapshot = event.snapshot
    if event.type == LifecycleEventType.FIRST_APPEARANCE:
        if snapshot.on_ground:
            return "📍 On Ground"
        return f"✈️ Airborne at {_feet(snapshot.altitude)} ft"
    if event.type == LifecycleEventType.DEPARTURE:
        return f"📈 Climbing - {_feet(snapshot.altitude)} ft"
    if event.type == LifecycleEventType.LANDING:
        return "📍 On Ground"
    return f"Last seen at {_feet(snapshot.altitude)} ft"


def format_event_message(
    event: LifecycleEvent,
    *,
    tz: tzinfo | None = None,
    now: datetime | None = None,
) -> NotificationMessage:
    """Build the notification for one lifecycle event."""

    snapshot = event.snapshot
    prior = get_aircraft_prior(snapshot.type_code)
    aircraft_name = (
        (prior.name if prior else None)
        or snapshot.type_description
        or snapshot.type_code
        or "Unknown"
    )
    label = category_label(snapshot.category)
    emoji, title = EVENT_MARKERS[event.type]

    lines = [
        f"<b>Callsign:</b> {escape(snapshot.callsign or 'N/A')}",
        f"<b>ICAO:</b> <code>{escape(snapshot.identifier)}</code>",
        f"<b>Type:</b> {escape(aircraft_name)}",
        f"<b>Category:</b> {escape(label)}",
    ]
    if snapshot.operator:
        lines.append(f"<b>Operator:</b> {escape(snapshot.operator)}")
    lines.append("")
    lines.append(_status_line(event))
    if snapshot.track is not None:
        lines.append(f"🧭 <b>Heading:</b> {heading_direction(snapshot.track)} ({snapshot.track}°)")
    if snapshot.ground_speed:
        lines.append(f"⚡ <b>Speed:</b> {snapshot.ground_speed} kts")
    if prior and prior.description:
        lines.append(f"📋 <b>Role:</b> {escape(prior.description)}")
    if event.detail:
        lines.append("")
        lines.append(f"ℹ️ {escape(event.detail)}")

    location = format_location(snapshot.latitude, snapshot.longitude)
    if location:
        lines.append(f"📍 {location}")

    stamp = (now or event.timestamp).astimezone(tz or timezone.utc)
    lines.append(f"⏰ {stamp.strftime('%Y-%m-%d %H:%M:%S %Z')}")

    links: list[NotificationLink] = []
    if snapshot.latitude is not None and snapshot.longitude is not None:
        links.append(
            NotificationLink(
                label="View Location",
                url=f"https://maps.google.com/?q={snapshot.latitude},{snapshot.longitude}",
            )
        )
    links.append(
        NotificationLink(
            label="Track on ADS-B",
            url=f"https://globe.adsbexchange.com/?icao={snapshot.identifier.lower()}",
        )
    )

    tags = [
        event.type.value.replace("_", "", 1),
        "".join(ch for ch in label if ch != "/" and not ch.isspace()),
        "Military",
    ]

    return NotificationMessage(
        emoji=emoji,
        title=title,
        severity=event_severity(event),
        lines=lines,
        links=links,
        tags=tags,
    )


@dataclass
class DispatchSummary:
    stored: int = 0
    notified: int = 0
    store_failures: int = 0
    notify_failures: int = 0


class EventDispatcher:
    """Hand each event to the store and, when enabled for its type, the notifier.

    The two handoffs are independent: a failure in one never skips the other,
    and neither stops later events. Notifications for a batch are sent
    concurrently and each one is abandoned after ``send_timeout`` seconds, so a
    hung notifier costs a pass at most one timeout.
    """

    def __init__(
        self,
        store: EventStore | None,
        notifier: Notifier | None,
        *,
        notify_first_appearance: bool | None = None,
        notify_departure: bool | None = None,
        notify_landing: bool | None = None,
        notify_disappeared: bool | None = None,
        timezone_name: str | None = None,
        send_timeout: float | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier

        def _flag(value: bool | None, default: bool) -> bool:
            return default if value is None else value

        self.enabled_types = {
            event_type
            for event_type, enabled in (
                (
                    LifecycleEventType.FIRST_APPEARANCE,
                    _flag(notify_first_appearance, settings.notify_first_appearance),
                ),
                (LifecycleEventType.DEPARTURE, _flag(notify_departure, settings.notify_departure)),
                (LifecycleEventType.LANDING, _flag(notify_landing, settings.notify_landing)),
                (
                    LifecycleEventType.DISAPPEARED,
                    _flag(notify_disappeared, settings.notify_disappeared),
                ),
            )
            if enabled
        }
        self.tz = resolve_timezone(timezone_name or settings.alert_timezone)
        self.send_timeout = send_timeout or settings.notify_send_timeout

    def should_notify(self, event: LifecycleEvent) -> bool:
        return event.type in self.enabled_types

    async def _deliver(self, event: LifecycleEvent) -> bool:
        try:
            return await asyncio.wait_for(
                self.notifier.send(format_event_message(event, tz=self.tz)),
                timeout=self.send_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Notifier timed out after %.1fs for %s event on %s",
                self.send_timeout,
                event.type.value,
                event.identifier,
            )
        except Exception as exc:
            logger.warning(
                "Notifier raised for %s event on %s: %s", event.type.value, event.identifier, exc
            )
        return False

    async def dispatch(self, events: Iterable[LifecycleEvent]) -> DispatchSummary:
        summary = DispatchSummary()
        to_notify: list[LifecycleEvent] = []
        for event in events:
            if self.store is not None:
                try:
                    self.store.record_event(event)
                    summary.stored += 1
                except Exception as exc:
                    summary.store_failures += 1
                    logger.warning(
                        "Failed to store %s event for %s: %s", event.type.value, event.identifier, exc
                    )

            if self.notifier is not None and self.should_notify(event):
                to_notify.append(event)

        if to_notify:
            results = await asyncio.gather(*(self._deliver(event) for event in to_notify))
            summary.notified = sum(1 for delivered in results if delivered)
            summary.notify_failures = len(results) - summary.notified
        return summary


__all__ = [
    "DispatchSummary",
    "EVENT_MARKERS",
    "EVENT_TITLES",
    "EventDispatcher",
    "EventStore",
    "Notifier",
    "event_severity",
    "event_title",
    "format_event_message",
    "heading_direction",
    "resolve_timezone",
]
