"""
Base source client interface shared by every platform integration.

A client knows how to turn one configured Source into query facets,
fetch one page of raw payloads per facet, and normalize each payload
into a RawItem. The crawl service drives the rest (dedup, relevance,
persistence), so a new platform only implements this contract.

Subclasses must implement:
    - platform: platform name matching ``Source.platform``
    - queries_for(): query facets for a source (subreddit, tags, ...)
    - fetch_page(): one page of raw payloads for one facet
    - normalize(): raw payload -> RawItem (or None to skip)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from briefing.errors import (
    ExternalServiceError,
    PermanentExternalError,
    TransientExternalError,
    error_from_status,
)
from briefing.ingestion.relevance import DEFAULT_ALLOWED_ORIGINS, RelevanceFilter
from briefing.ingestion.schemas import RawItem
from briefing.sources.schemas import Source

logger = logging.getLogger(__name__)


class SourceClient(ABC):
    """
    Abstract base class for source clients.

    Args:
        timeout: Per-request HTTP timeout in seconds
        require_keyword: Default keyword requirement of this client's
            relevance filter
    """

    # Pause between consecutive facet requests of one crawl run
    request_delay: float = 0.0

    def __init__(self, timeout: float = 30.0, require_keyword: bool = True):
        self._timeout = timeout
        self._require_keyword = require_keyword

    @property
    @abstractmethod
    def platform(self) -> str:
        """Platform handled by this client."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether the client is configured well enough to make requests."""
        return True

    @abstractmethod
    def queries_for(self, source: Source) -> list[str]:
        """Resolve the query facets for a source from its stored config."""
        ...

    def page_size_for(self, source: Source) -> int:
        """Page size for a source; ``limit`` in the source config wins."""
        limit = source.config.get("limit")
        if isinstance(limit, int) and limit > 0:
            return limit
        return self.default_page_size

    @property
    def default_page_size(self) -> int:
        return 50

    def options_for(self, source: Source) -> dict[str, Any]:
        """Extra keyword arguments for fetch_page taken from the source config."""
        return {}

    @abstractmethod
    async def fetch_page(
        self,
        query: str,
        page: int = 1,
        page_size: int = 50,
        **options: Any,
    ) -> list[dict[str, Any]]:
        """
        Fetch one page of raw payloads for one query facet.

        Raises:
            TransientExternalError: timeouts, 5xx, 429
            PermanentExternalError: bad credentials, other 4xx, bad payload
        """
        ...

    @abstractmethod
    def normalize(self, raw: dict[str, Any]) -> RawItem | None:
        """Map one raw payload to a RawItem, or None if it is unusable."""
        ...

    def relevance_filter_for(self, source: Source) -> RelevanceFilter:
        """Build the relevance filter for a source.

        ``keywords`` and ``allowed_origins`` in the source config override
        the defaults.
        """
        config = source.config
        kwargs: dict[str, Any] = {"require_keyword": self._require_keyword}

        keywords = config.get("keywords")
        if isinstance(keywords, list) and keywords:
            kwargs["keywords"] = [str(k) for k in keywords]

        origins = config.get("allowed_origins")
        if isinstance(origins, list):
            kwargs["allowed_origins"] = [str(o) for o in origins]
        else:
            kwargs["allowed_origins"] = DEFAULT_ALLOWED_ORIGINS

        return RelevanceFilter(**kwargs)

    async def close(self) -> None:
        """Release client resources."""


def raise_for_response(response: httpx.Response, service: str) -> None:
    """Raise the typed error for a non-2xx response."""
    if response.is_success:
        return
    raise error_from_status(
        f"{service} returned HTTP {response.status_code}",
        response.status_code,
        response.text[:500],
    )


def wrap_transport_error(exc: Exception, service: str) -> ExternalServiceError:
    """Map an httpx transport failure or a bad payload to a typed error."""
    if isinstance(exc, (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError)):
        return TransientExternalError(f"{service} request failed: {exc!r}")
    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return PermanentExternalError(f"{service} returned a malformed payload: {exc!r}")
    if isinstance(exc, httpx.HTTPError):
        return TransientExternalError(f"{service} request failed: {exc!r}")
    return PermanentExternalError(f"{service} request failed: {exc}")
