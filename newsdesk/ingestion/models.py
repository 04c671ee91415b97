"""Data models for ingestion."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RawFeedItem(BaseModel):
    """One entry of a fetched feed, with every content field the source offered."""

    title: Optional[str] = Field(None, description="Entry title")
    link: Optional[str] = Field(None, description="Canonical external URL")
    content: Optional[str] = Field(None, description="Full body (content:encoded / atom content)")
    summary: Optional[str] = Field(None, description="Entry summary")
    description: Optional[str] = Field(None, description="Entry description")
    media_description: Optional[str] = Field(None, description="media:description text")
    published: Optional[datetime] = Field(None, description="Publish or update timestamp")
    categories: List[str] = Field(default_factory=list, description="Category tags")


class ParsedFeed(BaseModel):
    """Result of fetching and parsing a feed document."""

    url: str = Field(..., description="Feed URL")
    title: Optional[str] = Field(None, description="Channel title")
    items: List[RawFeedItem] = Field(default_factory=list, description="Parsed entries")


class NormalizedItem(BaseModel):
    """Cleaned item ready to be written as a draft post."""

    title: str = Field(..., description="Cleaned, length-capped title")
    content: str = Field(..., description="Cleaned HTML body, never empty")
    excerpt: str = Field(..., description="Plain-text summary, never empty")
    link: str = Field(..., description="Original item URL")
    published_at: datetime = Field(..., description="Source publish date")
    feed_name: str = Field(..., description="Feed the item came from")
