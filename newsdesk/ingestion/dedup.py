"""Duplicate detection for incoming feed items.

Three checks run in order, and the first one that decides wins:

1. Exact identity: a stored post with the same external id. With
   ``max_duplicate_age_hours`` set, a stored copy older than the window no
   longer counts, so stale items can be re-imported.
2. Cross-source allowance: feeds that allow duplicates from other sources
   skip the similarity check entirely.
3. Content similarity against recent imported posts, scored on title and
   excerpt word overlap plus shared title phrases.
"""

import logging
from typing import Callable, List, Set

import pendulum

from ..config import FeedConfig
from ..db.store import Store
from ..models import Article
from .models import RawFeedItem

logger = logging.getLogger(__name__)

TextSimilarity = Callable[[str, str], float]

TITLE_WEIGHT = 7
DESCRIPTION_WEIGHT = 3
PHRASE_OVERLAP_FLOOR = 0.8
MIN_TITLE_LENGTH = 10


def significant_words(text: str) -> Set[str]:
    """Lowercased whitespace tokens longer than three characters."""
    return {w for w in text.lower().split() if len(w) > 3}


def jaccard_similarity(text1: str, text2: str) -> float:
    """Jaccard similarity of the significant word sets of two texts."""
    if not text1 or not text2:
        return 0.0

    words1 = significant_words(text1)
    words2 = significant_words(text2)
    if not words1 or not words2:
        return 0.0

    return len(words1 & words2) / len(words1 | words2)


def extract_key_phrases(title: str) -> List[str]:
    """Two- and three-word runs of significant words, in title order."""
    words = title.lower().split()
    phrases = []

    for i in range(len(words) - 1):
        if len(words[i]) > 3 and len(words[i + 1]) > 3:
            phrases.append(f"{words[i]} {words[i + 1]}")

            if i < len(words) - 2 and len(words[i + 2]) > 3:
                phrases.append(f"{words[i]} {words[i + 1]} {words[i + 2]}")

    return phrases


def has_common_key_phrases(title1: str, title2: str) -> bool:
    """Whether the two titles share any key phrase."""
    phrases2 = set(extract_key_phrases(title2))
    return any(phrase in phrases2 for phrase in extract_key_phrases(title1))


def story_similarity(
    title: str,
    description: str,
    other_title: str,
    other_excerpt: str,
    text_similarity: TextSimilarity = jaccard_similarity,
) -> float:
    """
    Score how likely two items describe the same story, from 0.0 to 1.0.

    Title similarity is weighted 0.7 and description-vs-excerpt 0.3. A shared
    key phrase in the titles raises the score to at least 0.8.
    """
    title = title.lower().strip()
    other_title = other_title.lower().strip()

    title_similarity = text_similarity(title, other_title)
    desc_similarity = text_similarity(description.lower().strip(), other_excerpt.lower().strip())

    # weights kept in tenths so boundary scores compare exactly
    weighted = (title_similarity * TITLE_WEIGHT + desc_similarity * DESCRIPTION_WEIGHT) / 10

    if has_common_key_phrases(title, other_title):
        return max(weighted, PHRASE_OVERLAP_FLOOR)
    return weighted


class DuplicateDetector:
    """Decide whether an incoming item is already represented in the store."""

    def __init__(
        self,
        store: Store,
        similarity_window_days: int = 3,
        text_similarity: TextSimilarity = jaccard_similarity,
    ) -> None:
        """
        Initialize duplicate detector.

        Args:
            store: Article store
            similarity_window_days: How far back to look for similar posts
            text_similarity: Pluggable ``(text, text) -> float`` scorer
        """
        self.store = store
        self.similarity_window_days = similarity_window_days
        self.text_similarity = text_similarity

    async def is_duplicate(self, item: RawFeedItem, feed: FeedConfig, external_id: str) -> bool:
        """Run the identity, source-allowance and similarity checks in order."""
        title = (item.title or "")[:50]

        if await self.store.count_by_external_id(external_id) > 0:
            logger.debug("Exact id match for %s", external_id)
            if feed.max_duplicate_age_hours:
                cutoff = pendulum.now("UTC").subtract(hours=feed.max_duplicate_age_hours)
                recent = await self.store.find_by_external_id_since(external_id, cutoff)
                if recent is None:
                    logger.info(
                        "Stored copy older than %dh, allowing re-import: %s",
                        feed.max_duplicate_age_hours,
                        title,
                    )
                    return False
            return True

        if feed.allow_duplicates_from_different_sources:
            return False

        if feed.content_similarity_threshold < 1.0:
            similar = await self.find_similar(item, feed.content_similarity_threshold)
            if similar:
                for post in similar:
                    logger.debug("Similar to %r from %s", post.title[:40], post.external_source)
                return True

        return False

    async def find_similar(self, item: RawFeedItem, threshold: float) -> List[Article]:
        """Recent imported posts whose similarity to ``item`` reaches ``threshold``."""
        title = (item.title or "").strip()
        if len(title) < MIN_TITLE_LENGTH:
            return []

        description = item.description or item.summary or ""
        since = pendulum.now("UTC").subtract(days=self.similarity_window_days)
        candidates = await self.store.recent_imported_articles(since)

        similar = []
        for post in candidates:
            score = self.score(title, description, post)
            if score >= threshold:
                logger.debug("Similarity %.0f%% with %r", score * 100, post.title[:30])
                similar.append(post)
        return similar

    def score(self, title: str, description: str, post: Article) -> float:
        return story_similarity(
            title,
            description,
            post.title or "",
            post.excerpt or "",
            text_similarity=self.text_similarity,
        )
