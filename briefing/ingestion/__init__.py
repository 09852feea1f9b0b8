"""Source clients and the relevance filter."""

from briefing.ingestion.base_client import SourceClient
from briefing.ingestion.language import detect_language
from briefing.ingestion.qiita_client import QiitaClient
from briefing.ingestion.reddit_client import RedditClient
from briefing.ingestion.relevance import RelevanceFilter
from briefing.ingestion.schemas import RawItem

__all__ = [
    "QiitaClient",
    "RawItem",
    "RedditClient",
    "RelevanceFilter",
    "SourceClient",
    "detect_language",
]


def create_clients() -> dict[str, SourceClient]:
    """Instantiate one client per supported platform, keyed by platform."""
    clients: list[SourceClient] = [RedditClient(), QiitaClient()]
    return {c.platform: c for c in clients}
