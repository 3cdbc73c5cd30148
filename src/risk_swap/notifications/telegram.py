from __future__ import annotations

import asyncio
import json

import requests

from ..logger import get_logger
from .base import Notification, Notifier

logger = get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramNotifier(Notifier):
    """Sends Markdown messages through the Telegram Bot API ``sendMessage`` method."""

    def __init__(
        self,
        bot_token: str | None,
        chat_id: str | None,
        *,
        request_timeout: float = 10.0,
    ):
        self._bot_token = bot_token
        self.chat_id = chat_id
        self._timeout = request_timeout

    @property
    def name(self) -> str:
        return "telegram"

    @property
    def enabled(self) -> bool:
        return bool(self._bot_token and self.chat_id)

    def _payload(self, notification: Notification) -> dict[str, object]:
        payload: dict[str, object] = {
            "chat_id": self.chat_id,
            "text": notification.text,
            "parse_mode": "Markdown",
        }
        if notification.buttons:
            markup = {
                "inline_keyboard": [
                    [{"text": b.text, "url": b.url} for b in notification.buttons]
                ]
            }
            payload["reply_markup"] = json.dumps(markup)
        return payload

    async def send(self, notification: Notification) -> None:
        """Post ``notification`` to the configured chat.

        Raises:
            requests.exceptions.RequestException: If the HTTP call fails
            RuntimeError: If Telegram answers with ``ok: false``
        """
        if not self.enabled:
            logger.warning("Telegram bot token or chat ID is not set; skipping")
            return

        url = f"{TELEGRAM_API_URL}/bot{self._bot_token}/sendMessage"
        response = await asyncio.to_thread(
            requests.post, url, json=self._payload(notification), timeout=self._timeout
        )
        response.raise_for_status()
        data = response.json()
        if not data.get("ok"):
            raise RuntimeError(
                f"Telegram rejected notification: {data.get('description')}"
            )
        logger.info("Telegram notification sent successfully.")
