"""Data models for the sources module."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SourceCategory(str, Enum):
    """What a source publishes; decides the kind of content item it yields."""

    COMMUNITY = "community"
    NEWS_SITE = "news_site"
    JOB_SITE = "job_site"


class SourcePlatform(str, Enum):
    """Platforms with a client implementation."""

    REDDIT = "reddit"
    QIITA = "qiita"


@dataclass
class Source:
    """A configured external feed (one subreddit, one tag search, ...).

    ``config`` holds per-source parameters such as ``subreddit``, ``sort``,
    ``limit`` or ``tags``; clients fall back to their defaults for
    anything missing.
    """

    name: str
    url: str
    category: str
    platform: str
    config: dict = field(default_factory=dict)
    enabled: bool = True
    cron: str = "0 */2 * * *"
    id: int | None = None
    last_crawled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
