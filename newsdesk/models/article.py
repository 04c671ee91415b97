"""Post model for imported and hand-written articles."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import DBModel


class PostStatus(str, Enum):
    """Publication state of a post."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class Article(DBModel):
    """Article ("post") model."""

    title: str = Field(..., description="Article title")
    slug: str = Field(..., description="Globally unique URL slug")
    content: str = Field(..., description="Article body as HTML")
    excerpt: Optional[str] = Field(None, description="Short summary")
    status: PostStatus = Field(PostStatus.DRAFT, description="Publication state")
    featured: bool = Field(False, description="Whether the post is featured")
    published_at: Optional[datetime] = Field(None, description="Source publish date, used for ordering")
    external_id: Optional[str] = Field(None, description="Stable id of the imported item")
    external_source: Optional[str] = Field(None, description="Feed the item was imported from")
    external_url: Optional[str] = Field(None, description="Original item link")
    author_id: int = Field(..., description="Foreign key to users table")
    category_id: Optional[int] = Field(None, description="Foreign key to categories table")
