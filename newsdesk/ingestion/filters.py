"""Item validation and keyword filtering."""

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from ..config import FeedConfig
from .models import RawFeedItem

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_MARKERS = ("albuquerque", "new mexico", " nm ")


class FilterDecision(str, Enum):
    """Why an item was accepted or rejected by the keyword filter."""

    PRIORITY = "priority"
    EXCLUDED = "excluded"
    KEYWORD_MATCH = "keyword_match"
    LOCAL_FALLBACK = "local_fallback"
    NOT_RELEVANT = "not_relevant"
    NO_RULES = "no_rules"

    @property
    def accepted(self) -> bool:
        return self not in (FilterDecision.EXCLUDED, FilterDecision.NOT_RELEVANT)


def is_valid(item: RawFeedItem) -> bool:
    """An item needs both a title and a link to be imported."""
    return bool(item.title and item.title.strip() and item.link and item.link.strip())


def combined_text(item: RawFeedItem) -> str:
    """Lowercased title, description and content, space separated."""
    parts = [item.title or "", item.description or "", item.content or ""]
    return " ".join(parts).lower()


def has_bounded_match(text: str, keyword: str) -> bool:
    """
    Match ``keyword`` as a standalone token in already-lowercased ``text``.

    A hit is the keyword surrounded by spaces, at the start or end of the
    text, or directly followed by ``:`` or ``.``.
    """
    kw = keyword.lower()
    return (
        f" {kw} " in text
        or text.startswith(f"{kw} ")
        or text.endswith(f" {kw}")
        or f"{kw}:" in text
        or f"{kw}." in text
    )


class KeywordFilter:
    """Apply per-feed priority, exclude and relevance keyword rules."""

    def __init__(self, local_markers: Optional[Sequence[str]] = None) -> None:
        """
        Args:
            local_markers: Substrings that mark content as local even when no
                configured keyword matches
        """
        markers = DEFAULT_LOCAL_MARKERS if local_markers is None else local_markers
        self.local_markers = [m.lower() for m in markers if m]

    def evaluate(self, item: RawFeedItem, feed: FeedConfig) -> FilterDecision:
        """Return the first rule that decides the item."""
        text = combined_text(item)

        if any(k.lower() in text for k in feed.priority_keywords):
            return FilterDecision.PRIORITY

        if any(has_bounded_match(text, k) for k in feed.exclude_keywords):
            return FilterDecision.EXCLUDED

        if feed.keywords:
            if self._matches_keywords(item, text, feed.keywords):
                return FilterDecision.KEYWORD_MATCH
            if any(marker in text for marker in self.local_markers):
                return FilterDecision.LOCAL_FALLBACK
            return FilterDecision.NOT_RELEVANT

        return FilterDecision.NO_RULES

    def passes(self, item: RawFeedItem, feed: FeedConfig) -> bool:
        decision = self.evaluate(item, feed)
        title = (item.title or "")[:50]
        if decision is FilterDecision.PRIORITY:
            logger.info("Priority content detected: %s", title)
        elif not decision.accepted:
            logger.debug("Filtered (%s): %s", decision.value, title)
        return decision.accepted

    @staticmethod
    def _matches_keywords(item: RawFeedItem, text: str, keywords: Iterable[str]) -> bool:
        link = (item.link or "").lower()
        categories: List[str] = [c.lower() for c in item.categories]
        for keyword in keywords:
            kw = keyword.lower()
            if kw in text or kw in link or any(kw in c for c in categories):
                return True
        return False


def passes_filter(item: RawFeedItem, feed: FeedConfig) -> bool:
    """Module-level shortcut using the default local markers."""
    return KeywordFilter().passes(item, feed)
