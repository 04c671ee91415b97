"""Cron-driven scheduler for import runs."""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

import pendulum
from croniter import croniter

from ..config import SchedulerSettings
from ..errors import SchedulerError
from .models import ImportStats, ImportSummary
from .orchestrator import ImportOrchestrator

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await ``operation()`` up to ``max_attempts`` times, pausing ``delay`` seconds between tries.

    Raises:
        SchedulerError: wrapping the last failure once attempts run out
    """
    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if attempt < max_attempts:
                logger.warning("Import attempt %d failed (%s), retrying in %.1fs...", attempt, e, delay)
                await sleep(delay)

    raise SchedulerError(max_attempts, last_error)


def next_run_time(cron_pattern: str, timezone: str, now: Optional[datetime] = None) -> datetime:
    """Next fire time of ``cron_pattern`` evaluated in ``timezone``."""
    base = pendulum.instance(now).in_timezone(timezone) if now else pendulum.now(timezone)
    return croniter(cron_pattern, base).get_next(datetime)


class ImportScheduler:
    """Run the orchestrator on a cron schedule, one run at a time."""

    def __init__(
        self,
        orchestrator: ImportOrchestrator,
        settings: Optional[SchedulerSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize import scheduler.

        Args:
            orchestrator: Orchestrator shared with manual triggers
            settings: Cron pattern, timezone and retry settings
            sleep: Coroutine used for cron waits and retry delays
        """
        self.orchestrator = orchestrator
        self.settings = settings or SchedulerSettings()
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.is_running = False
        self.stats = ImportStats()

    def start(self) -> None:
        """Start the cron loop on the running event loop."""
        if not self.settings.enabled:
            logger.info("RSS auto-import is disabled")
            return

        if self._task is not None:
            logger.info("RSS scheduler is already running")
            return

        if not croniter.is_valid(self.settings.cron_pattern):
            raise ValueError(f"Invalid cron pattern: {self.settings.cron_pattern}")
        try:
            pendulum.timezone(self.settings.timezone)
        except Exception as e:
            raise ValueError(f"Invalid timezone: {self.settings.timezone}") from e

        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(
            "RSS scheduler started with pattern %s (%s)",
            self.settings.cron_pattern,
            self.settings.timezone,
        )

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("RSS scheduler stopped")

    def is_scheduler_running(self) -> bool:
        return self._task is not None

    async def wait(self) -> None:
        """Block until the scheduler is stopped."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _loop(self) -> None:
        while True:
            fire_at = next_run_time(self.settings.cron_pattern, self.settings.timezone)
            delay = max(0.0, (fire_at - pendulum.now(self.settings.timezone)).total_seconds())
            logger.debug("Next scheduled import at %s", fire_at.isoformat())
            await self._sleep(delay)
            await self.execute_import()

    async def execute_import(self) -> Optional[ImportSummary]:
        """
        Run one import with retries unless another run is in progress.

        Failures are logged and counted, never raised.
        """
        if self.is_running:
            logger.info("RSS import already in progress, skipping...")
            return None

        self.is_running = True
        start = time.monotonic()

        try:
            logger.info("Starting scheduled RSS import...")
            summary = await with_retry(
                self.orchestrator.run_all,
                self.settings.max_retries,
                self.settings.retry_delay_seconds,
                sleep=self._sleep,
            )
            self._update_stats(True, time.monotonic() - start)
            logger.info("Scheduled RSS import completed in %.1fs", time.monotonic() - start)
            return summary
        except SchedulerError as e:
            self._update_stats(False, time.monotonic() - start)
            self._handle_import_failure(e)
            return None
        finally:
            self.is_running = False

    async def trigger_import(self) -> Optional[ImportSummary]:
        """Manual run, subject to the same overlap guard."""
        return await self.execute_import()

    def get_stats(self) -> ImportStats:
        return self.stats.model_copy()

    def update_config(self, **changes: Any) -> None:
        """Apply validated settings changes, restarting the cron loop if it was active."""
        settings = SchedulerSettings.model_validate({**self.settings.model_dump(), **changes})

        was_running = self.is_scheduler_running()
        if was_running:
            self.stop()

        self.settings = settings

        if was_running and self.settings.enabled:
            self.start()

    def _update_stats(self, success: bool, run_time: float) -> None:
        stats = self.stats
        stats.last_run = pendulum.now("UTC")
        stats.total_imports += 1
        if success:
            stats.successful_imports += 1
        else:
            stats.failed_imports += 1
        stats.average_run_time = (
            stats.average_run_time * (stats.total_imports - 1) + run_time
        ) / stats.total_imports

    def _handle_import_failure(self, error: SchedulerError) -> None:
        logger.error(
            "RSS import failed: %s (attempts=%d, runs=%d, failed=%d)",
            error.last_error,
            error.attempts,
            self.stats.total_imports,
            self.stats.failed_imports,
        )
