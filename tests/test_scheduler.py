import asyncio
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from newsdesk.config import SchedulerSettings
from newsdesk.errors import SchedulerError
from newsdesk.pipeline import ImportScheduler, ImportSummary, next_run_time, with_retry


class StubOrchestrator:
    def __init__(self, failures=0):
        self.failures = failures
        self.calls = 0

    async def run_all(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("database unavailable")
        return ImportSummary(total_feeds=1, successful_feeds=1, total_imported=2)


def test_with_retry_succeeds_after_failures(no_sleep):
    orchestrator = StubOrchestrator(failures=2)

    summary = asyncio.run(with_retry(orchestrator.run_all, 3, 5.0, sleep=no_sleep))

    assert summary.total_imported == 2
    assert orchestrator.calls == 3


def test_with_retry_gives_up(no_sleep):
    orchestrator = StubOrchestrator(failures=5)

    with pytest.raises(SchedulerError) as exc:
        asyncio.run(with_retry(orchestrator.run_all, 3, 5.0, sleep=no_sleep))

    assert exc.value.attempts == 3
    assert "database unavailable" in str(exc.value.last_error)
    assert orchestrator.calls == 3


def test_next_run_time_uses_timezone():
    now = datetime(2025, 10, 14, 13, 30, tzinfo=timezone.utc)  # 07:30 in Denver

    fire_at = next_run_time("0 */4 * * *", "America/Denver", now=now)

    assert fire_at.hour == 8
    assert fire_at.minute == 0
    assert fire_at.utcoffset().total_seconds() == -6 * 3600


def test_execute_import_updates_stats(no_sleep):
    scheduler = ImportScheduler(StubOrchestrator(failures=1), SchedulerSettings(max_retries=2), sleep=no_sleep)

    summary = asyncio.run(scheduler.execute_import())
    stats = scheduler.get_stats()

    assert summary.total_imported == 2
    assert stats.total_imports == 1
    assert stats.successful_imports == 1
    assert stats.failed_imports == 0
    assert stats.last_run is not None


def test_failed_run_is_counted_not_raised(no_sleep):
    scheduler = ImportScheduler(StubOrchestrator(failures=10), SchedulerSettings(max_retries=3), sleep=no_sleep)

    assert asyncio.run(scheduler.execute_import()) is None
    assert scheduler.get_stats().failed_imports == 1
    assert scheduler.is_running is False


def test_overlapping_run_is_skipped(no_sleep):
    orchestrator = StubOrchestrator()
    scheduler = ImportScheduler(orchestrator, sleep=no_sleep)
    scheduler.is_running = True

    assert asyncio.run(scheduler.trigger_import()) is None
    assert orchestrator.calls == 0


def test_start_is_noop_when_disabled():
    scheduler = ImportScheduler(StubOrchestrator(), SchedulerSettings(enabled=False))

    async def scenario():
        scheduler.start()
        return scheduler.is_scheduler_running()

    assert asyncio.run(scenario()) is False


def test_start_stop_and_update_config():
    scheduler = ImportScheduler(StubOrchestrator(), SchedulerSettings(enabled=True))

    async def scenario():
        scheduler.start()
        scheduler.start()
        running = scheduler.is_scheduler_running()
        scheduler.update_config(cron_pattern="*/15 * * * *")
        still_running = scheduler.is_scheduler_running()
        scheduler.stop()
        return running, still_running, scheduler.is_scheduler_running()

    assert asyncio.run(scenario()) == (True, True, False)
    assert scheduler.settings.cron_pattern == "*/15 * * * *"


def test_invalid_cron_pattern_rejected():
    scheduler = ImportScheduler(StubOrchestrator(), SchedulerSettings(enabled=True, cron_pattern="not a cron"))

    async def scenario():
        scheduler.start()

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def test_invalid_timezone_rejected_at_start():
    scheduler = ImportScheduler(StubOrchestrator(), SchedulerSettings(enabled=True, timezone="Mars/Olympus"))

    async def scenario():
        scheduler.start()

    with pytest.raises(ValueError):
        asyncio.run(scenario())
    assert scheduler.is_scheduler_running() is False


def test_cron_loop_waits_with_injected_sleep():
    waits = []
    orchestrator = StubOrchestrator()

    async def fake_sleep(seconds):
        waits.append(seconds)
        scheduler.stop()
        await asyncio.sleep(0)

    scheduler = ImportScheduler(orchestrator, SchedulerSettings(enabled=True), sleep=fake_sleep)

    async def scenario():
        scheduler.start()
        await scheduler.wait()

    asyncio.run(scenario())

    assert len(waits) == 1
    assert 0 <= waits[0] <= 4 * 3600
    assert orchestrator.calls == 0


def test_update_config_validates_changes():
    scheduler = ImportScheduler(StubOrchestrator(), SchedulerSettings(max_retries=3))

    with pytest.raises(ValidationError):
        scheduler.update_config(max_retries=0)

    assert scheduler.settings.max_retries == 3
