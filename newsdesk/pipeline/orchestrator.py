"""Import orchestrator that runs the RSS pipeline across all configured feeds."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from ..config import FeedConfig, ImporterSettings
from ..db.articles import ArticleWriter, generate_external_id
from ..db.store import Store
from ..errors import FeedError, SetupError
from ..ingestion import ContentNormalizer, DuplicateDetector, FeedFetcher, KeywordFilter, is_valid
from .models import ImportResult, ImportSummary, SkipReason

logger = logging.getLogger(__name__)

CUSTOM_FEED_MAX_ITEMS = 10


@dataclass(frozen=True)
class ImportContext:
    """Author and category shared by every feed in a run."""

    author_id: int
    category_id: Optional[int]


class ImportOrchestrator:
    """Fetch, filter, deduplicate, normalize and store items from every enabled feed."""

    def __init__(
        self,
        store: Store,
        feeds: List[FeedConfig],
        settings: Optional[ImporterSettings] = None,
        fetcher: Optional[FeedFetcher] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize import orchestrator.

        Args:
            store: Article store
            feeds: Configured feeds; read-only during a run
            settings: Importer settings
            fetcher: Shared feed fetcher (keeps its cache between runs)
            sleep: Coroutine used for the pause between batches
        """
        self.store = store
        self.feeds = list(feeds)
        self.settings = settings or ImporterSettings()
        self.fetcher = fetcher or FeedFetcher(self.settings)
        self.keyword_filter = KeywordFilter(self.settings.local_fallback_keywords)
        self.detector = DuplicateDetector(store, self.settings.similarity_window_days)
        self.normalizer = ContentNormalizer()
        self.writer = ArticleWriter(store)
        self._sleep = sleep

    async def resolve_context(self) -> ImportContext:
        """Find the admin author and a default category. Raises SetupError."""
        try:
            admin = await self.store.find_admin_user(self.settings.admin_email)
            if admin is None:
                raise SetupError("No admin user found. Please create an admin user first.")

            category = await self.store.find_news_category() or await self.store.first_category()
            if category is None:
                logger.info("Creating default RSS category...")
                category = await self.store.create_category(
                    self.settings.default_category_name,
                    self.settings.default_category_slug,
                    "Imported RSS content",
                )
        except SetupError:
            raise
        except Exception as e:
            raise SetupError(f"Failed to resolve import author/category: {e}") from e

        return ImportContext(author_id=admin.id, category_id=category.id)

    async def run_all(self) -> ImportSummary:
        """Import every enabled feed in batches. Raises SetupError if the run cannot start."""
        start = time.monotonic()
        logger.info("Starting RSS import from all feeds...")

        context = await self.resolve_context()

        enabled = [feed for feed in self.feeds if feed.enabled]
        if not enabled:
            logger.warning("No enabled feeds found")
            return ImportSummary(total_duration=time.monotonic() - start)

        results = await self._process_in_batches(enabled, context)
        summary = ImportSummary.from_results(results, time.monotonic() - start)

        logger.info(
            "RSS import completed: %d imported, %d skipped, %d/%d feeds ok in %.1fs",
            summary.total_imported,
            summary.total_skipped,
            summary.successful_feeds,
            summary.total_feeds,
            summary.total_duration,
        )
        return summary

    async def _process_in_batches(self, feeds: List[FeedConfig], context: ImportContext) -> List[ImportResult]:
        batch_size = self.settings.batch_size
        results: List[ImportResult] = []

        for i in range(0, len(feeds), batch_size):
            batch = feeds[i:i + batch_size]
            logger.debug("Processing batch %d with %d feeds", i // batch_size + 1, len(batch))

            outcomes = await asyncio.gather(
                *(self.import_feed(feed, context) for feed in batch),
                return_exceptions=True,
            )
            for feed, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error("Batch processing error for %s: %s", feed.name, outcome)
                    results.append(ImportResult.failed(feed.name, str(outcome) or type(outcome).__name__))
                else:
                    results.append(outcome)

            if i + batch_size < len(feeds):
                await self._sleep(self.settings.batch_delay_seconds)

        return results

    async def import_feed(self, feed: FeedConfig, context: ImportContext) -> ImportResult:
        """Run one feed through the pipeline. Feed-level failures end up in the result."""
        start = time.monotonic()
        result = ImportResult(feed_name=feed.name)

        try:
            logger.info("Processing %s...", feed.name)
            parsed = await self.fetcher.fetch(feed.url)

            if not parsed.items:
                raise FeedError("No items found in feed")

            items = parsed.items[:feed.max_items]
            logger.debug("Found %d items in %s", len(items), feed.name)

            for item in items:
                if not is_valid(item):
                    result.skip(SkipReason.INVALID)
                    continue

                if not self.keyword_filter.passes(item, feed):
                    result.skip(SkipReason.KEYWORDS)
                    continue

                external_id = generate_external_id(item.link, feed.name)
                if await self.detector.is_duplicate(item, feed, external_id):
                    result.skip(SkipReason.DUPLICATE)
                    continue

                try:
                    normalized = self.normalizer.normalize(item, feed.name)
                    await self.writer.save(normalized, context.author_id, context.category_id)
                except Exception as e:
                    result.errors.append(f'Failed to save "{item.title}": {e}')
                    logger.warning("Failed to save %r from %s: %s", item.title, feed.name, e)
                    continue

                result.imported += 1
                logger.debug("Imported: %s", item.title[:60])

            result.success = True
            logger.info(
                "%s: %d imported, %d skipped (%s)",
                feed.name,
                result.imported,
                result.skipped,
                ", ".join(f"{n} {reason}" for reason, n in result.skip_reasons.items()),
            )
        except Exception as e:
            result.errors.append(str(e) or type(e).__name__)
            logger.error("Failed to process %s: %s", feed.name, e)
        finally:
            result.duration = time.monotonic() - start

        return result

    async def import_from_url(self, url: str, feed_name: str) -> ImportResult:
        """Import a one-off feed with default settings. Never raises."""
        try:
            context = await self.resolve_context()
            feed = FeedConfig(name=feed_name, url=url, max_items=CUSTOM_FEED_MAX_ITEMS)
        except Exception as e:
            return ImportResult.failed(feed_name, str(e))
        return await self.import_feed(feed, context)

    def get_feeds(self) -> List[FeedConfig]:
        """Copies of the configured feeds."""
        return [feed.model_copy() for feed in self.feeds]

    def clear_cache(self) -> None:
        self.fetcher.clear_cache()

    async def clear_feed_posts(self, feed_name: str) -> int:
        """Delete every post imported from ``feed_name``."""
        cleared = await self.store.delete_by_source(feed_name)
        logger.info("Cleared %d posts from %s", cleared, feed_name)
        return cleared

    async def get_feed_post_counts(self) -> Dict[str, int]:
        return await self.store.count_by_source()
