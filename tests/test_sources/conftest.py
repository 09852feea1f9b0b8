"""Shared fixtures for sources tests."""

from datetime import datetime, timezone

import pytest

from briefing.sources.schemas import Source


@pytest.fixture
def sample_source() -> Source:
    """A sample Source for testing."""
    return Source(
        name="r/japandev",
        url="https://www.reddit.com/r/japandev",
        category="community",
        platform="reddit",
        config={"subreddit": "japandev", "sort": "new"},
    )


@pytest.fixture
def sample_db_row() -> dict:
    """A dict mimicking an asyncpg Record for a source."""
    return {
        "id": 3,
        "name": "r/japandev",
        "url": "https://www.reddit.com/r/japandev",
        "category": "community",
        "platform": "reddit",
        "config": '{"subreddit": "japandev", "sort": "new"}',
        "enabled": True,
        "cron": "0 */2 * * *",
        "last_crawled_at": None,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
