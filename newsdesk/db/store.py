"""Storage contract used by the import pipeline."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ..models import Article, Category, User


class Store(ABC):
    """Abstract async article store.

    Implementations must make ``upsert_article`` atomic: a failed write leaves
    no partial post behind.
    """

    @abstractmethod
    async def count_by_external_id(self, external_id: str) -> int:
        """Number of posts carrying ``external_id``."""

    @abstractmethod
    async def find_by_external_id_since(self, external_id: str, since: datetime) -> Optional[Article]:
        """A post with ``external_id`` created at or after ``since``, if any."""

    @abstractmethod
    async def slug_exists(self, slug: str) -> bool:
        """Whether any post already uses ``slug``."""

    @abstractmethod
    async def recent_imported_articles(self, since: datetime) -> List[Article]:
        """Imported posts (non-null external source) created at or after ``since``."""

    @abstractmethod
    async def upsert_article(self, article: Article) -> Article:
        """
        Insert ``article`` in one transaction.

        If a post with the same external id exists it is superseded: its
        content fields are refreshed and its creation time restarts. Its id,
        slug and status are kept.
        """

    @abstractmethod
    async def find_admin_user(self, email: Optional[str] = None) -> Optional[User]:
        """The user with ``email`` or, failing that, any ADMIN user."""

    @abstractmethod
    async def find_news_category(self) -> Optional[Category]:
        """Category with slug ``news`` or a name containing ``News``."""

    @abstractmethod
    async def first_category(self) -> Optional[Category]:
        """Any category."""

    @abstractmethod
    async def create_category(self, name: str, slug: str, description: Optional[str] = None) -> Category:
        """Create a category."""

    @abstractmethod
    async def delete_by_source(self, external_source: str) -> int:
        """Delete every post imported from ``external_source``; return the count."""

    @abstractmethod
    async def count_by_source(self) -> Dict[str, int]:
        """Post counts grouped by external source, imported posts only."""

    async def close(self) -> None:
        """Release resources held by the store."""
