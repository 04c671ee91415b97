"""RSS fetching, filtering, deduplication and normalization."""

from .dedup import DuplicateDetector, jaccard_similarity, story_similarity
from .filters import FilterDecision, KeywordFilter, is_valid, passes_filter
from .models import NormalizedItem, ParsedFeed, RawFeedItem
from .normalizer import ContentNormalizer, generate_excerpt, slugify
from .rss_fetcher import FeedFetcher, parse_feed

__all__ = [
    "ContentNormalizer",
    "DuplicateDetector",
    "FeedFetcher",
    "FilterDecision",
    "KeywordFilter",
    "NormalizedItem",
    "ParsedFeed",
    "RawFeedItem",
    "generate_excerpt",
    "is_valid",
    "jaccard_similarity",
    "parse_feed",
    "passes_filter",
    "slugify",
    "story_similarity",
]
