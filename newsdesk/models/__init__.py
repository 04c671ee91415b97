"""Data models for newsdesk."""

from .article import Article, PostStatus
from .category import Category
from .user import User

__all__ = ["Article", "Category", "PostStatus", "User"]
