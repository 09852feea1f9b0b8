"""Data models for daily digests."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum


class DigestStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class DigestStats:
    """Item counts behind one digest."""

    post_count: int = 0
    article_count: int = 0
    listing_count: int = 0

    @property
    def total_count(self) -> int:
        return self.post_count + self.article_count + self.listing_count


@dataclass
class Digest:
    """
    The digest row for one calendar date.

    ``digest_date`` is unique. Only ``sent`` counts as done; a ``draft``
    or ``failed`` digest is regenerated by the next run for its date.
    """

    digest_date: date
    content: str
    post_count: int = 0
    article_count: int = 0
    listing_count: int = 0
    status: DigestStatus = DigestStatus.DRAFT
    sent_at: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_sent(self) -> bool:
        return self.status == DigestStatus.SENT

    @property
    def stats(self) -> DigestStats:
        return DigestStats(self.post_count, self.article_count, self.listing_count)

    def mark_sent(self, sent_at: datetime | None = None) -> None:
        self.status = DigestStatus.SENT
        self.sent_at = sent_at or datetime.now(timezone.utc)


@dataclass
class DigestResult:
    """Outcome of one ``DigestService.generate`` call."""

    digest: Digest | None = None
    notified: bool = False
    skipped: bool = False
    failed: bool = False
    stats: DigestStats | None = None
    error_message: str | None = None

    @classmethod
    def already_sent(cls) -> "DigestResult":
        return cls(skipped=True)


@dataclass
class SummaryOutcome:
    """Text produced for a digest and whether the LLM wrote it."""

    content: str
    success: bool
    stats: DigestStats
