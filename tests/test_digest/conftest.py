"""Shared fixtures for digest tests."""

from datetime import date, datetime, timezone

import pytest

from briefing.content.schemas import ContentItem
from briefing.digest.config import DigestConfig, TelegramConfig

DIGEST_DATE = date(2024, 5, 1)


@pytest.fixture
def digest_date() -> date:
    return DIGEST_DATE


@pytest.fixture
def digest_config() -> DigestConfig:
    return DigestConfig(max_items_per_kind=2, fallback_items_per_kind=2)


@pytest.fixture
def telegram_config() -> TelegramConfig:
    return TelegramConfig(bot_token="123:abc", chat_id="-100200")


@pytest.fixture
def day_items() -> list[ContentItem]:
    created = datetime(2024, 5, 1, 3, 0, tzinfo=timezone.utc)

    def item(id: int, kind: str, title: str, **kwargs) -> ContentItem:
        return ContentItem(
            id=id,
            source_id=1,
            kind=kind,
            external_id=str(id),
            title=title,
            created_at=created,
            **kwargs,
        )

    return [
        item(1, "post", "Got an offer from a Tokyo startup", like_count=12, comment_count=3,
             sentiment="positive"),
        item(2, "post", "Visa renewal troubles", like_count=4, sentiment="negative"),
        item(3, "post", "Which ward to live in?", like_count=1),
        item(4, "article", "転職市場の動向", title_translated="이직 시장 동향",
             body_translated="엔지니어 수요가 증가"),
        item(5, "listing", "Backend Engineer", author="Mercari"),
    ]
