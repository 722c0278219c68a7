"""Telegram Bot API client for operator alerts"""

import logging
import httpx
from volume_guard.config import settings

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Sends Markdown alerts to a chat. Never raises into the caller."""

    def __init__(
        self,
        bot_token: str | None = None,
        chat_id: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bot_token = settings.telegram_bot_token if bot_token is None else bot_token
        self.chat_id = settings.telegram_chat_id if chat_id is None else chat_id
        self.base_url = base_url or settings.telegram_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send_alert(self, text: str) -> None:
        """Deliver one message; silently no-ops when the bot is not configured"""
        if not self.configured:
            logger.warning("Alert requested but Telegram is not configured")
            return

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/bot{self.bot_token}/sendMessage",
                    json={"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"},
                )
                response.raise_for_status()
                logger.info("Telegram alert sent")
            except httpx.HTTPError as e:
                logger.error(f"Telegram alert failed: {e!r}")
