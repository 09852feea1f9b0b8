"""Digest delivery channels.

Provides an ABC for notifiers plus a Telegram bot implementation. ``send``
never raises: delivery problems are logged and reported as False.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date

import httpx

from briefing.digest.config import DigestConfig, TelegramConfig

logger = logging.getLogger(__name__)


def format_digest_message(digest_date: date, summary: str, config: DigestConfig | None = None) -> str:
    """Wrap a digest with its dated header and footer."""
    config = config or DigestConfig()
    return (
        f"*{config.title}*\n"
        f"{digest_date.isoformat()}\n"
        "\n"
        f"{summary}\n"
        "\n"
        "---\n"
        f"_{config.footer}_"
    )


class Notifier(ABC):
    """Abstract base for digest delivery."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this channel (e.g. 'telegram')."""

    @abstractmethod
    async def send(self, text: str) -> bool:
        """Deliver a message.

        Returns:
            True if delivery succeeded, False otherwise.
        """


class TelegramNotifier(Notifier):
    """Sends messages through the Telegram Bot API ``sendMessage`` method.

    Creates a new ``httpx.AsyncClient`` per call (short-lived, no pooling)
    matching the project's HTTP pattern.
    """

    def __init__(self, config: TelegramConfig | None = None) -> None:
        self._config = config or TelegramConfig()

    @property
    def name(self) -> str:
        return "telegram"

    @property
    def configured(self) -> bool:
        return self._config.configured

    async def send(self, text: str) -> bool:
        if not self._config.configured:
            logger.warning("Telegram is disabled or not configured, message not sent")
            return False

        token = self._config.bot_token.get_secret_value()
        payload = {
            "chat_id": self._config.chat_id,
            "text": text,
            "parse_mode": "Markdown",
        }
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                resp = await client.post(
                    f"{self._config.base_url}/bot{token}/sendMessage",
                    json=payload,
                )
                if not resp.is_success:
                    logger.warning(
                        "Telegram returned %d: %s", resp.status_code, resp.text[:200]
                    )
                    return False
                if not resp.json().get("ok", False):
                    logger.warning("Telegram API returned ok=false: %s", resp.text[:200])
                    return False
        except httpx.TimeoutException:
            logger.warning("Telegram request timed out")
            return False
        except Exception as e:
            logger.warning("Telegram delivery failed: %s", e)
            return False

        logger.info("Telegram message sent")
        return True
