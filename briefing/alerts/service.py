"""Failure alerts for crawl runs.

Alerts go out through a ``Notifier`` (Telegram by default) and are rate
limited per alert key: once an alert for a key has been delivered, further
alerts for that key are suppressed until the cooldown has passed. The
cooldown lives in the service instance, so it spans one process.
"""

import logging
import time
from collections.abc import Callable, Sequence

from briefing.alerts.config import AlertConfig
from briefing.crawl.schemas import CrawlHistory, CrawlStatus
from briefing.digest.notifier import Notifier, TelegramNotifier

logger = logging.getLogger(__name__)

_MARKDOWN_SPECIALS = ("_", "*", "[", "`")


def escape_markdown(text: str) -> str:
    """Escape the characters Telegram's legacy Markdown treats as markup."""
    for char in _MARKDOWN_SPECIALS:
        text = text.replace(char, "\\" + char)
    return text


def build_alert_message(title: str, detail: str | None = None, max_detail_length: int = 300) -> str:
    lines = [f"*[Alert] {escape_markdown(title)}*"]
    if detail and detail.strip():
        if len(detail) > max_detail_length:
            detail = detail[:max_detail_length] + "..."
        lines += ["", escape_markdown(detail)]
    return "\n".join(lines)


class AlertService:
    """
    Rate-limited failure alerts.

    Usage:
        alerts = AlertService()
        await alerts.report_crawl("reddit", histories)
    """

    def __init__(
        self,
        notifier: Notifier | None = None,
        config: AlertConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._notifier = notifier or TelegramNotifier()
        self._config = config or AlertConfig()
        self._clock = clock
        self._last_sent: dict[str, float] = {}

    def _in_cooldown(self, key: str) -> bool:
        last = self._last_sent.get(key)
        if last is None:
            return False
        return self._clock() - last < self._config.cooldown_minutes * 60

    async def send_alert(self, key: str, title: str, detail: str | None = None) -> bool:
        """Deliver an alert unless ``key`` is cooling down.

        Only a delivered alert starts the cooldown. Never raises.

        Returns:
            True if the alert was delivered.
        """
        if not self._config.enabled:
            return False
        if self._in_cooldown(key):
            logger.debug("Alert %s suppressed by cooldown", key)
            return False

        message = build_alert_message(title, detail, self._config.max_detail_length)
        if not await self._notifier.send(message):
            logger.warning("Failed to deliver alert %s", key)
            return False

        self._last_sent[key] = self._clock()
        logger.info("Alert %s delivered", key)
        return True

    async def report_crawl(self, label: str, histories: Sequence[CrawlHistory]) -> bool:
        """Alert when any run of a crawl batch ended failed or partial."""
        bad = [h for h in histories if h.status in (CrawlStatus.FAILED, CrawlStatus.PARTIAL)]
        if not bad:
            return False

        failed = sum(1 for h in bad if h.status == CrawlStatus.FAILED)
        detail = (
            f"{len(bad)} of {len(histories)} sources did not complete "
            f"({failed} failed, {len(bad) - failed} partial)"
        )
        errors = "; ".join(
            f"source {h.source_id}: {h.error_message}" for h in bad if h.error_message
        )
        if errors:
            detail = f"{detail}\n{errors}"
        return await self.send_alert(f"{label}-crawl-partial", f"{label} crawl incomplete", detail)

    async def report_crawl_error(self, label: str, error: BaseException) -> bool:
        """Alert that a whole crawl batch aborted."""
        return await self.send_alert(
            f"{label}-crawl",
            f"{label} crawl failed",
            str(error) or type(error).__name__,
        )
