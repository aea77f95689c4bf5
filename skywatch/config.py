"""Configuration settings for the SkyWatch fusion core."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger("skywatch.config")

# Shared SSM client for secret reads. Default to a region so imports do not
# fail in environments without AWS configuration (e.g. CI test runners).
_ssm_client = boto3.client(
    "ssm",
    region_name=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "us-east-1",
)


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SourceConfig:
    """One upstream ADS-B feed."""

    name: str
    base_url: str
    military_endpoint: str | None = "/mil"
    area_endpoint: str | None = "/point/{lat}/{lon}/{radius}"
    hex_endpoint: str | None = "/hex/{hex}"
    enabled: bool = True
    priority: int = 1  # higher = more trusted
    requests_per_minute: int = 60

    @property
    def min_interval_seconds(self) -> float:
        return 60.0 / max(self.requests_per_minute, 1)


@dataclass(frozen=True)
class FocusArea:
    """High-interest point/radius query used to surface unflagged aircraft."""

    name: str
    lat: float
    lon: float
    radius_nm: int


@dataclass(frozen=True)
class RegionBounds:
    """Inclusive latitude/longitude bounding box."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float | None, lon: float | None) -> bool:
        if lat is None or lon is None:
            return False
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon


DEFAULT_SOURCES: list[SourceConfig] = [
    SourceConfig(
        name="adsb.lol",
        base_url="https://api.adsb.lol/v2",
        priority=3,
        requests_per_minute=60,
    ),
    SourceConfig(
        name="airplanes.live",
        base_url="https://api.airplanes.live/v2",
        priority=3,
        requests_per_minute=60,
    ),
    SourceConfig(
        name="adsb.fi",
        base_url="https://opendata.adsb.fi/api/v2",
        priority=2,
        requests_per_minute=30,
    ),
    SourceConfig(
        name="adsbdb",
        base_url="https://api.adsbdb.com/v0",
        military_endpoint="/aircraft/military",
        area_endpoint=None,
        priority=1,
        requests_per_minute=20,
    ),
]

DEFAULT_FOCUS_AREAS: list[FocusArea] = [
    FocusArea(name="Lebanon-Israel", lat=33.5, lon=35.5, radius_nm=150),
    FocusArea(name="Persian Gulf", lat=27, lon=51, radius_nm=200),
    FocusArea(name="Iran", lat=32, lon=53, radius_nm=300),
    FocusArea(name="Syria", lat=35, lon=38, radius_nm=150),
    FocusArea(name="Red Sea", lat=20, lon=38, radius_nm=200),
]

# Middle East
DEFAULT_REGION = RegionBounds(min_lat=10, max_lat=42, min_lon=24, max_lon=63)


def _load_sources() -> list[SourceConfig]:
    """Read ``SKYWATCH_SOURCES`` (JSON list of source objects) or use defaults."""

    raw = os.getenv("SKYWATCH_SOURCES")
    if not raw:
        return list(DEFAULT_SOURCES)

    try:
        entries = json.loads(raw)
        return [SourceConfig(**entry) for entry in entries]
    except (ValueError, TypeError) as exc:
        logger.error("Invalid SKYWATCH_SOURCES value, using defaults: %s", exc)
        return list(DEFAULT_SOURCES)


@lru_cache(maxsize=1)
def get_telegram_bot_token() -> str:
    """Fetch the Telegram bot token from AWS SSM Parameter Store.

    The value is cached in-memory to avoid repeated SSM calls. Any failure to
    retrieve the token results in a runtime error.
    """

    try:
        response = _ssm_client.get_parameter(
            Name="/skywatch/telegram/bot_token", WithDecryption=True
        )
        value = response.get("Parameter", {}).get("Value")
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - AWS error passthrough
        logger.error("Failed to load Telegram bot token from SSM: %s", exc)
        raise RuntimeError("Unable to load Telegram bot token from SSM") from exc

    if not value:
        logger.error("Received empty Telegram bot token from SSM")
        raise RuntimeError("Telegram bot token not configured in SSM")

    return value


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    skywatch_env: str = os.getenv("SKYWATCH_ENV", "local")
    log_level: str = os.getenv("SKYWATCH_LOG_LEVEL", "INFO")

    # Feeds
    sources: list[SourceConfig] = field(default_factory=_load_sources)
    focus_areas: list[FocusArea] = field(default_factory=lambda: list(DEFAULT_FOCUS_AREAS))
    request_timeout: float = float(os.getenv("SKYWATCH_REQUEST_TIMEOUT", "10.0"))
    hex_lookup_timeout: float = float(os.getenv("SKYWATCH_HEX_LOOKUP_TIMEOUT", "5.0"))
    hex_cache_ttl_seconds: float = float(os.getenv("SKYWATCH_HEX_CACHE_TTL", "60"))
    hex_cache_max_entries: int = int(os.getenv("SKYWATCH_HEX_CACHE_MAX_ENTRIES", "1024"))
    user_agent: str = os.getenv("SKYWATCH_USER_AGENT", "OSINT-Aviation-Platform/1.0")

    # Region filtering
    region_filter_enabled: bool = _get_bool("SKYWATCH_REGION_FILTER_ENABLED", default=True)
    region: RegionBounds = DEFAULT_REGION

    # Lifecycle tracking
    airborne_altitude_threshold_ft: float = float(
        os.getenv("SKYWATCH_AIRBORNE_ALTITUDE_FT", "500")
    )
    disappeared_after_seconds: float = float(
        os.getenv("SKYWATCH_DISAPPEARED_AFTER_SECONDS", "600")
    )

    # Notifications
    telegram_enabled: bool = _get_bool("TELEGRAM_ENABLED", default=True)
    telegram_bot_token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    telegram_chat_id: str = os.getenv("TELEGRAM_ALERT_CHAT_ID", "")
    telegram_api_base: str = os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org")
    alert_timezone: str = os.getenv("SKYWATCH_ALERT_TIMEZONE", "Asia/Beirut")
    notify_first_appearance: bool = _get_bool("NOTIFY_FIRST_APPEARANCE", default=True)
    notify_departure: bool = _get_bool("NOTIFY_DEPARTURE", default=True)
    notify_landing: bool = _get_bool("NOTIFY_LANDING", default=False)
    notify_disappeared: bool = _get_bool("NOTIFY_DISAPPEARED", default=True)
    notify_send_timeout: float = float(os.getenv("SKYWATCH_NOTIFY_SEND_TIMEOUT", "15.0"))

    # Cron endpoint protection
    cron_secret: str | None = os.getenv("CRON_SECRET")


settings = Settings()

# Only reach out to SSM when notifications are wanted and the env is silent
if settings.telegram_enabled and settings.telegram_chat_id and not settings.telegram_bot_token:
    try:
        settings.telegram_bot_token = get_telegram_bot_token()
    except RuntimeError:
        logger.warning("Telegram bot token not available at import time")

__all__ = [
    "DEFAULT_FOCUS_AREAS",
    "DEFAULT_REGION",
    "DEFAULT_SOURCES",
    "FocusArea",
    "RegionBounds",
    "Settings",
    "SourceConfig",
    "get_telegram_bot_token",
    "settings",
]
