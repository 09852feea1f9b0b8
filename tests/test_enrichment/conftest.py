"""Shared fixtures for enrichment tests."""

from unittest.mock import AsyncMock

import pytest

from briefing.content.schemas import ContentItem
from briefing.enrichment.config import EnrichmentConfig
from briefing.enrichment.persistence import EnrichmentGateway
from briefing.llm.client import LLMClient


@pytest.fixture
def enrichment_config() -> EnrichmentConfig:
    return EnrichmentConfig(target_language="Korean")


@pytest.fixture
def llm() -> AsyncMock:
    return AsyncMock(spec=LLMClient)


@pytest.fixture
def enrichment_gateway() -> AsyncMock:
    gw = AsyncMock(spec=EnrichmentGateway)
    gw.save_all.side_effect = lambda items: len(items)
    return gw


@pytest.fixture
def make_item():
    """Factory for detached content items."""

    def factory(id: int, title: str = "転職しました", body: str = "", **kwargs) -> ContentItem:
        return ContentItem(
            id=id,
            source_id=1,
            kind=kwargs.pop("kind", "post"),
            external_id=f"ext-{id}",
            title=title,
            body=body,
            language=kwargs.pop("language", "ja"),
            **kwargs,
        )

    return factory
