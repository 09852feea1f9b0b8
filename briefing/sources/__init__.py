"""Source registry: which external feeds are crawled and how."""

from briefing.sources.repository import SourcesRepository
from briefing.sources.schemas import Source, SourceCategory, SourcePlatform
from briefing.sources.service import SourcesService

__all__ = [
    "Source",
    "SourceCategory",
    "SourcePlatform",
    "SourcesRepository",
    "SourcesService",
]
