"""
Normalized raw item produced by every source client.

Clients map their platform payloads onto this model; the relevance filter
and the ingestion gateway only ever see RawItem.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RawItem(BaseModel):
    """One fetched item, before filtering and persistence."""

    external_id: str = Field(..., min_length=1, description="Source-native identifier")
    title: str
    body: str = ""
    author: str | None = None
    origin: str | None = Field(
        default=None,
        description="Community, subreddit or tag the item was published under",
    )
    url: str | None = None
    tags: list[str] = Field(default_factory=list)

    like_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)
    share_count: int = Field(default=0, ge=0)

    # None when the source timestamp could not be parsed; raw value kept for logs
    published_at: datetime | None = None
    published_raw: str | None = None

    removed: bool = False
    locked: bool = False
    pinned: bool = False

    @property
    def text(self) -> str:
        """Title and body joined, as used for keyword matching."""
        return f"{self.title} {self.body}"
