"""Draft post writer for imported items."""

import asyncio
import hashlib
import logging
import random
import re
import string
import time
from typing import Optional

from ..ingestion.models import NormalizedItem
from ..ingestion.normalizer import slugify
from ..models import Article, PostStatus
from .store import Store

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "rss-item"


def generate_external_id(link: str, feed_name: str) -> str:
    """Stable identifier for a (link, feed) pair."""
    prefix = re.sub(r"\s+", "-", feed_name.lower())
    digest = hashlib.sha256(link.encode("utf-8")).hexdigest()[:16]
    return f"{prefix}-{digest}"


def _random_suffix(length: int = 6) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


class ArticleWriter:
    """Persist normalized items as DRAFT posts."""

    def __init__(self, store: Store) -> None:
        """Initialize writer."""
        self.store = store
        # slug choice and insert must not interleave between concurrent feeds
        self._lock = asyncio.Lock()

    async def ensure_unique_slug(self, base_slug: str) -> str:
        """
        Return ``base_slug`` or a suffixed variant nobody uses.

        Tries a random suffix first and falls back to a timestamped one, so
        there are at most two lookups.
        """
        if not await self.store.slug_exists(base_slug):
            return base_slug

        suffix = _random_suffix()
        candidate = f"{base_slug}-{suffix}"
        if not await self.store.slug_exists(candidate):
            return candidate

        return f"{base_slug}-{int(time.time() * 1000)}-{suffix}"

    async def save(
        self,
        item: NormalizedItem,
        author_id: int,
        category_id: Optional[int] = None,
    ) -> Article:
        """
        Write ``item`` as a draft post. Raises PersistenceError on store failure.

        A re-import of a stored item refreshes its text but keeps its status.

        Returns:
            The stored post
        """
        async with self._lock:
            slug = await self.ensure_unique_slug(slugify(item.title) or FALLBACK_SLUG)
            saved = await self.store.upsert_article(self._build(item, slug, author_id, category_id))

        logger.debug("Saved draft %s (%s)", saved.slug, saved.external_id)
        return saved

    @staticmethod
    def _build(item: NormalizedItem, slug: str, author_id: int, category_id: Optional[int]) -> Article:
        return Article(
            title=item.title,
            slug=slug,
            content=item.content,
            excerpt=item.excerpt,
            status=PostStatus.DRAFT,
            featured=False,
            published_at=item.published_at,
            external_id=generate_external_id(item.link, item.feed_name),
            external_source=item.feed_name,
            external_url=item.link,
            author_id=author_id,
            category_id=category_id,
        )
