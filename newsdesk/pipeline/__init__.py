"""Import pipeline orchestration and scheduling."""

from .models import ImportResult, ImportStats, ImportSummary, SkipReason
from .orchestrator import ImportContext, ImportOrchestrator
from .scheduler import ImportScheduler, next_run_time, with_retry

__all__ = [
    "ImportContext",
    "ImportOrchestrator",
    "ImportResult",
    "ImportScheduler",
    "ImportStats",
    "ImportSummary",
    "SkipReason",
    "next_run_time",
    "with_retry",
]
