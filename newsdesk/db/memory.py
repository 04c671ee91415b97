"""In-process store for dry runs and tests."""

import asyncio
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

import pendulum

from ..errors import PersistenceError
from ..models import Article, Category, User
from .store import Store


class MemoryStore(Store):
    """Store that keeps posts, users and categories in dictionaries."""

    def __init__(self, users: Optional[List[User]] = None, categories: Optional[List[Category]] = None) -> None:
        """Initialize memory store, optionally seeded with users and categories."""
        self.posts: Dict[int, Article] = {}
        self.users: Dict[int, User] = {}
        self.categories: Dict[int, Category] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

        for user in users or []:
            self._insert_user(user)
        for category in categories or []:
            self._insert_category(category)

    def _new_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def _insert_user(self, user: User) -> User:
        user = user.model_copy(update={"id": user.id or self._new_id()})
        self.users[user.id] = user
        return user

    def _insert_category(self, category: Category) -> Category:
        category = category.model_copy(update={"id": category.id or self._new_id()})
        self.categories[category.id] = category
        return category

    def add_article(self, article: Article, created_at: Optional[datetime] = None) -> Article:
        """Insert ``article`` directly, bypassing upsert rules."""
        created = created_at or article.created_at or pendulum.now("UTC")
        article = article.model_copy(
            update={"id": article.id or self._new_id(), "created_at": created, "updated_at": created}
        )
        self.posts[article.id] = article
        return article

    async def count_by_external_id(self, external_id: str) -> int:
        return sum(1 for p in self.posts.values() if p.external_id == external_id)

    async def find_by_external_id_since(self, external_id: str, since: datetime) -> Optional[Article]:
        for post in self.posts.values():
            if post.external_id == external_id and post.created_at and post.created_at >= since:
                return post
        return None

    async def slug_exists(self, slug: str) -> bool:
        return any(p.slug == slug for p in self.posts.values())

    async def recent_imported_articles(self, since: datetime) -> List[Article]:
        return [
            p for p in self.posts.values()
            if p.external_source is not None and p.created_at and p.created_at >= since
        ]

    async def upsert_article(self, article: Article) -> Article:
        async with self._lock:
            now = pendulum.now("UTC")
            existing = None
            if article.external_id is not None:
                existing = next(
                    (p for p in self.posts.values() if p.external_id == article.external_id), None
                )

            if existing is not None:
                updated = existing.model_copy(
                    update={
                        "title": article.title,
                        "content": article.content,
                        "excerpt": article.excerpt,
                        "published_at": article.published_at,
                        "external_url": article.external_url,
                        "created_at": now,
                        "updated_at": now,
                    }
                )
                self.posts[updated.id] = updated
                return updated

            if any(p.slug == article.slug for p in self.posts.values()):
                raise PersistenceError(f"Slug already exists: {article.slug}")

            created = article.model_copy(update={"id": self._new_id(), "created_at": now, "updated_at": now})
            self.posts[created.id] = created
            return created

    async def find_admin_user(self, email: Optional[str] = None) -> Optional[User]:
        if email:
            for user in self.users.values():
                if user.email == email:
                    return user
        return next((u for u in self.users.values() if u.role == "ADMIN"), None)

    async def find_news_category(self) -> Optional[Category]:
        for category in self.categories.values():
            if category.slug == "news" or "News" in category.name:
                return category
        return None

    async def first_category(self) -> Optional[Category]:
        return next(iter(self.categories.values()), None)

    async def create_category(self, name: str, slug: str, description: Optional[str] = None) -> Category:
        return self._insert_category(Category(name=name, slug=slug, description=description))

    async def delete_by_source(self, external_source: str) -> int:
        doomed = [pid for pid, p in self.posts.items() if p.external_source == external_source]
        for pid in doomed:
            del self.posts[pid]
        return len(doomed)

    async def count_by_source(self) -> Dict[str, int]:
        return dict(Counter(p.external_source for p in self.posts.values() if p.external_source is not None))
