"""Data models for crawl run history."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from briefing.errors import InvalidStateTransitionError


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CrawlStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class CrawlHistory:
    """
    One crawl run of one source.

    Starts as ``running`` and moves exactly once to ``success``,
    ``partial`` or ``failed``; a second transition raises
    InvalidStateTransitionError.
    """

    source_id: int
    status: CrawlStatus = CrawlStatus.RUNNING
    items_found: int = 0
    items_saved: int = 0
    items_updated: int = 0
    error_message: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_ms: int | None = None
    id: int | None = None

    @classmethod
    def start(cls, source_id: int) -> "CrawlHistory":
        return cls(source_id=source_id, started_at=_utc_now())

    @property
    def is_running(self) -> bool:
        return self.status == CrawlStatus.RUNNING

    def complete(self, items_found: int, items_saved: int, items_updated: int = 0) -> None:
        self._finish(CrawlStatus.SUCCESS)
        self._set_counts(items_found, items_saved, items_updated)

    def partial(
        self,
        items_found: int,
        items_saved: int,
        items_updated: int,
        error_message: str,
    ) -> None:
        """Some query facets failed but at least one succeeded."""
        self._finish(CrawlStatus.PARTIAL)
        self._set_counts(items_found, items_saved, items_updated)
        self.error_message = error_message

    def fail(self, error_message: str) -> None:
        self._finish(CrawlStatus.FAILED)
        self.error_message = error_message

    def _set_counts(self, found: int, saved: int, updated: int) -> None:
        self.items_found = found
        self.items_saved = saved
        self.items_updated = updated

    def _finish(self, status: CrawlStatus) -> None:
        if not self.is_running:
            raise InvalidStateTransitionError(
                f"Crawl history {self.id} is already {self.status.value}"
            )
        self.status = status
        self.finished_at = _utc_now()
        started = self.started_at or self.finished_at
        self.duration_ms = int((self.finished_at - started).total_seconds() * 1000)
