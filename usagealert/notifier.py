"""Alert delivery over a generic webhook or the Telegram Bot API."""

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Optional

from telegram import Bot
from telegram.error import TelegramError

from .config import telegram_bot_token, webhook_url

logger = logging.getLogger(__name__)


class TelegramBot:
    """Sends HTML messages to a chat, optionally inside a forum topic."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        topic_id: Optional[int] = None,
        timeout: float = 10,
    ):
        self.token = token
        self.chat_id = chat_id
        self.topic_id = topic_id
        self.timeout = timeout

    async def send_message(self, text: str, parse_mode: str = "HTML") -> None:
        """Send a message to the configured chat."""
        kwargs = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "connect_timeout": self.timeout,
            "read_timeout": self.timeout,
            "write_timeout": self.timeout,
        }
        if self.topic_id:
            kwargs["message_thread_id"] = self.topic_id
        async with Bot(self.token) as bot:
            await bot.send_message(**kwargs)


class AlertNotifier:
    """Delivers alert text, preferring the webhook over Telegram."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        telegram: Optional[TelegramBot] = None,
        timeout: float = 10,
    ):
        self.webhook_url = webhook_url
        self.telegram = telegram
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: dict) -> "AlertNotifier":
        timeout = config.get("notify", {}).get("timeout", 10)
        telegram_config = config.get("telegram", {})
        token = telegram_bot_token(config)
        chat_id = telegram_config.get("chat_id")

        telegram = None
        if token and chat_id:
            telegram = TelegramBot(
                token=token,
                chat_id=str(chat_id),
                topic_id=telegram_config.get("topic_id"),
                timeout=timeout,
            )

        return cls(webhook_url=webhook_url(config) or None, telegram=telegram, timeout=timeout)

    def _post_webhook(self, message: str) -> bool:
        data = json.dumps({"text": message}).encode("utf-8")
        try:
            req = urllib.request.Request(
                self.webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return 200 <= response.status < 300
        except urllib.error.HTTPError as e:
            logger.error(f"Webhook error {e.code}: {e.reason}")
            return False
        except (urllib.error.URLError, OSError, ValueError, http.client.HTTPException) as e:
            logger.error(f"Webhook request failed: {e}")
            return False

    async def deliver(self, message: str) -> bool:
        """Send one message. Returns whether any channel accepted it."""
        if self.webhook_url:
            if await asyncio.to_thread(self._post_webhook, message):
                return True
            logger.warning("Webhook delivery failed, trying Telegram")

        if not self.telegram:
            logger.warning("No Telegram bot configured, alert not delivered")
            return False

        try:
            await self.telegram.send_message(message)
            return True
        except TelegramError as e:
            logger.error(f"Telegram delivery failed: {e}")
            return False
