"""RSS feed fetcher with response caching and per-URL rate limiting."""

import asyncio
import calendar
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

import feedparser
import httpx
import pendulum

from ..config import ImporterSettings
from ..errors import FetchError
from .models import ParsedFeed, RawFeedItem

logger = logging.getLogger(__name__)

USER_AGENT = "newsdesk/0.1 (RSS importer)"


@dataclass
class CacheEntry:
    """Cached feed and the monotonic time it was stored."""

    feed: ParsedFeed
    timestamp: float


class FeedFetcher:
    """Fetch and parse RSS/Atom feeds.

    One instance is meant to live for the whole process: its cache and
    rate-limit bookkeeping only help if they survive between runs.
    """

    def __init__(
        self,
        settings: Optional[ImporterSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize feed fetcher.

        Args:
            settings: Timeouts, cache and rate-limit settings
            transport: Optional httpx transport (used to fake the network)
            clock: Monotonic clock in seconds
            sleep: Coroutine used to wait out the rate limit
        """
        self.settings = settings or ImporterSettings()
        self.transport = transport
        self._clock = clock
        self._sleep = sleep
        self._cache: Dict[str, CacheEntry] = {}
        self._last_request: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._last_prune = clock()

    async def fetch(self, url: str) -> ParsedFeed:
        """
        Return the parsed feed at ``url``.

        Fresh cache entries are served without a request. On failure the last
        cached copy is returned if there is one; otherwise FetchError is raised.
        """
        self._maybe_prune()

        async with self._lock_for(url):
            cached = self._cache.get(url)
            if cached and self._clock() - cached.timestamp < self.settings.cache_ttl_seconds:
                logger.debug("Using cached data for %s", url)
                return cached.feed

            await self._wait_for_rate_limit(url)

            try:
                logger.info("Fetching fresh data from %s", url)
                self._last_request[url] = self._clock()
                feed = await self._download(url)
            except FetchError as e:
                if cached:
                    logger.warning("%s; using stale cached data", e)
                    return cached.feed
                raise

            self._cache[url] = CacheEntry(feed=feed, timestamp=self._clock())
            return feed

    def clear_cache(self) -> None:
        """Drop every cached feed."""
        self._cache.clear()
        logger.info("RSS cache cleared")

    def prune_cache(self) -> int:
        """
        Evict expired entries, then the oldest ones beyond the size cap.

        Rate-limit and lock bookkeeping of URLs idle longer than the minimum
        request interval is dropped too.

        Returns:
            Number of evicted entries
        """
        now = self._clock()
        expired = [
            url for url, entry in self._cache.items()
            if now - entry.timestamp > self.settings.cache_ttl_seconds
        ]
        for url in expired:
            del self._cache[url]

        deleted = len(expired)
        overflow = len(self._cache) - self.settings.cache_max_entries
        if overflow > 0:
            oldest = sorted(self._cache.items(), key=lambda kv: kv[1].timestamp)[:overflow]
            for url, _ in oldest:
                del self._cache[url]
            deleted += overflow

        self._forget_idle_urls(now)
        self._last_prune = now
        if deleted:
            logger.debug("Cleaned %d cache entries", deleted)
        return deleted

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _forget_idle_urls(self, now: float) -> None:
        interval = self.settings.min_request_interval_seconds
        for url, last in list(self._last_request.items()):
            lock = self._locks.get(url)
            if now - last > interval and not (lock and lock.locked()):
                del self._last_request[url]
                self._locks.pop(url, None)

        for url, lock in list(self._locks.items()):
            if url not in self._last_request and not lock.locked():
                del self._locks[url]

    def _maybe_prune(self) -> None:
        if self._clock() - self._last_prune >= self.settings.cache_prune_interval_seconds:
            self.prune_cache()

    def _lock_for(self, url: str) -> asyncio.Lock:
        lock = self._locks.get(url)
        if lock is None:
            lock = self._locks[url] = asyncio.Lock()
        return lock

    async def _wait_for_rate_limit(self, url: str) -> None:
        last = self._last_request.get(url)
        if last is None:
            return
        remaining = self.settings.min_request_interval_seconds - (self._clock() - last)
        if remaining > 0:
            logger.info("Rate limiting: waiting %.1fs before requesting %s", remaining, url)
            await self._sleep(remaining)

    async def _download(self, url: str) -> ParsedFeed:
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.fetch_timeout,
                follow_redirects=True,
                max_redirects=self.settings.max_redirects,
                headers={"User-Agent": USER_AGENT},
                transport=self.transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.TimeoutException:
            raise FetchError(url, "Request timed out")
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            raise FetchError(url, f"HTTP error: {e}")

        return parse_feed(url, response.content)


def parse_feed(url: str, document: bytes) -> ParsedFeed:
    """Parse a feed document. Raises FetchError if nothing usable comes out."""
    feed = feedparser.parse(document)

    if feed.bozo and not feed.entries:
        raise FetchError(url, f"Invalid RSS feed: {feed.get('bozo_exception')}")

    return ParsedFeed(
        url=url,
        title=feed.feed.get("title"),
        items=[_entry_to_item(entry) for entry in feed.entries],
    )


def _entry_to_item(entry) -> RawFeedItem:
    # feedparser folds content:encoded into entry.content
    content = None
    if entry.get("content"):
        bodies = [c.get("value", "") for c in entry.content if c.get("value")]
        if bodies:
            content = max(bodies, key=len)

    return RawFeedItem(
        title=entry.get("title"),
        link=entry.get("link"),
        content=content,
        summary=entry.get("summary"),
        description=entry.get("description"),
        media_description=entry.get("media_description"),
        published=_entry_date(entry),
        categories=_entry_categories(entry),
    )


def _entry_date(entry):
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return pendulum.from_timestamp(calendar.timegm(parsed))
            except (OverflowError, TypeError, ValueError):
                continue
    return None


def _entry_categories(entry) -> List[str]:
    return [tag.get("term") for tag in entry.get("tags") or [] if tag.get("term")]
