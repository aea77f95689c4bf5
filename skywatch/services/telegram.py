"""Telegram bot notifier."""

from __future__ import annotations

import logging

import httpx

from skywatch.config import settings
from skywatch.models.notifications import NotificationMessage

logger = logging.getLogger("skywatch.services.telegram")


class TelegramNotifier:
    """Deliver messages through the Telegram Bot API ``sendMessage`` call.

    ``send`` reports delivery as a boolean and never raises.
    """

    def __init__(
        self,
        *,
        bot_token: str | None = None,
        chat_id: str | None = None,
        enabled: bool | None = None,
        api_base: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.bot_token = bot_token if bot_token is not None else settings.telegram_bot_token
        self.chat_id = chat_id if chat_id is not None else settings.telegram_chat_id
        self.enabled = settings.telegram_enabled if enabled is None else enabled
        self.api_base = (api_base or settings.telegram_api_base).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return self.enabled and bool(self.bot_token) and bool(self.chat_id)

    async def send(self, message: NotificationMessage) -> bool:
        if not self.configured:
            logger.info("Telegram notifications disabled or not configured; dropping %r", message.title)
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": message.render_html(),
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("Telegram request timed out: %s", exc)
            return False
        except httpx.RequestError as exc:
            # The URL embeds the token, so log only the exception type.
            logger.warning("Telegram request failed: %s", type(exc).__name__)
            return False

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            logger.warning(
                "Telegram API returned HTTP %s: %s", response.status_code, response.text[:200]
            )
            return False

        try:
            body = response.json()
        except ValueError as exc:
            logger.warning("Failed to parse Telegram response: %s", exc)
            return False

        if not isinstance(body, dict) or not body.get("ok"):
            logger.warning("Telegram rejected message: %s", body)
            return False

        logger.debug("Delivered Telegram message %r", message.title)
        return True


__all__ = ["TelegramNotifier"]
