import asyncio

import pytest

from newsdesk.config import ImporterSettings, SchedulerSettings
from newsdesk.db import MemoryStore
from newsdesk.ingestion import FeedFetcher
from newsdesk.pipeline import ImportOrchestrator, ImportScheduler
from newsdesk.triggers import ImportTriggers

FEED_URL = "https://feeds.test/krqe"
CUSTOM_URL = "https://feeds.test/custom"


@pytest.fixture
def triggers(store, make_feed, rss, item_xml, feed_transport, no_sleep):
    routes = {
        FEED_URL: rss(item_xml("Albuquerque zoo welcomes new elephant", "https://krqe.test/zoo")),
        CUSTOM_URL: rss(item_xml("Custom source story headline", "https://custom.test/1")),
    }
    settings = ImporterSettings(min_request_interval_seconds=0)
    fetcher = FeedFetcher(settings, transport=feed_transport(routes), sleep=no_sleep)
    orchestrator = ImportOrchestrator(
        store,
        [make_feed(url=FEED_URL, keywords=["albuquerque"])],
        settings,
        fetcher=fetcher,
        sleep=no_sleep,
    )
    scheduler = ImportScheduler(orchestrator, SchedulerSettings(enabled=True))
    return ImportTriggers(orchestrator, scheduler)


def test_post_without_action_runs_all_feeds(triggers):
    status, payload = asyncio.run(triggers.handle_post({}))

    assert status == 200
    assert payload["success"] is True
    assert payload["summary"]["total_imported"] == 1
    assert "saved as drafts" in payload["message"]


def test_post_custom_url(triggers):
    status, payload = asyncio.run(triggers.handle_post({"url": CUSTOM_URL, "feedName": "Custom"}))

    assert status == 200
    assert payload["result"]["imported"] == 1
    assert payload["message"].startswith("Successfully imported 1 posts from Custom")


def test_post_custom_url_failure(triggers):
    status, payload = asyncio.run(
        triggers.handle_post({"url": "https://feeds.test/missing", "feedName": "Missing"})
    )

    assert status == 500
    assert payload["error"].startswith("Import failed:")


def test_clear_feed_requires_name(triggers):
    status, payload = asyncio.run(triggers.handle_post({"action": "clear_feed"}))

    assert status == 400
    assert "feedName" in payload["error"]


def test_counts_and_clear(triggers):
    asyncio.run(triggers.handle_post({}))

    status, payload = asyncio.run(triggers.handle_post({"action": "get_feed_counts"}))
    assert status == 200
    assert payload["counts"] == {"KRQE News": 1}

    status, payload = asyncio.run(triggers.handle_post({"action": "clear_feed", "feedName": "KRQE News"}))
    assert status == 200
    assert payload["cleared"] == 1


def test_scheduler_actions(triggers):
    async def scenario():
        started = await triggers.handle_post({"action": "start_scheduler"})
        stats = await triggers.handle_post({"action": "get_stats"})
        manual = await triggers.handle_post({"action": "trigger_manual"})
        stopped = await triggers.handle_post({"action": "stop_scheduler"})
        return started, stats, manual, stopped

    started, stats, manual, stopped = asyncio.run(scenario())

    assert started[1]["isRunning"] is True
    assert stats[1]["stats"]["total_imports"] == 0
    assert manual[0] == 200
    assert manual[1]["summary"]["total_imported"] == 1
    assert stopped[1]["isRunning"] is False


def test_setup_failure_returns_500(make_feed, no_sleep):
    orchestrator = ImportOrchestrator(MemoryStore(), [make_feed()], sleep=no_sleep)

    status, payload = asyncio.run(ImportTriggers(orchestrator).handle_post({}))

    assert status == 500
    assert payload["error"] == "Failed to import RSS feeds"
    assert "admin" in payload["details"].lower()


def test_get_lists_feeds_and_scheduler(triggers):
    status, payload = asyncio.run(triggers.handle_get())

    assert status == 200
    assert payload["feeds"][0]["name"] == "KRQE News"
    assert payload["feeds"][0]["keywords"] == ["albuquerque"]
    assert payload["scheduler"]["isRunning"] is False
