"""Run result models."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SkipReason(str, Enum):
    """Why an item was not imported. Skips are not errors."""

    INVALID = "invalid"
    KEYWORDS = "keywords"
    DUPLICATE = "duplicates"


class ImportResult(BaseModel):
    """Outcome of importing one feed."""

    feed_name: str = Field(..., description="Feed name")
    success: bool = Field(False, description="Whether the feed was processed to the end")
    imported: int = Field(0, description="Posts written")
    skipped: int = Field(0, description="Items skipped as invalid, filtered or duplicate")
    errors: List[str] = Field(default_factory=list, description="Feed or item errors")
    duration: float = Field(0.0, description="Processing time in seconds")
    skip_reasons: Dict[str, int] = Field(
        default_factory=lambda: {reason.value: 0 for reason in SkipReason},
        description="Skipped items by reason",
    )

    def skip(self, reason: SkipReason) -> None:
        self.skipped += 1
        self.skip_reasons[reason.value] = self.skip_reasons.get(reason.value, 0) + 1

    @classmethod
    def failed(cls, feed_name: str, error: str, duration: float = 0.0) -> "ImportResult":
        return cls(feed_name=feed_name, success=False, errors=[error], duration=duration)


class ImportSummary(BaseModel):
    """Aggregate of one orchestrator run."""

    total_feeds: int = Field(0, description="Enabled feeds processed")
    successful_feeds: int = Field(0, description="Feeds processed without a feed-level error")
    total_imported: int = Field(0, description="Posts written across feeds")
    total_skipped: int = Field(0, description="Items skipped across feeds")
    total_duration: float = Field(0.0, description="Run time in seconds")
    results: List[ImportResult] = Field(default_factory=list, description="Per-feed results")

    @classmethod
    def from_results(cls, results: List[ImportResult], duration: float) -> "ImportSummary":
        return cls(
            total_feeds=len(results),
            successful_feeds=sum(1 for r in results if r.success),
            total_imported=sum(r.imported for r in results),
            total_skipped=sum(r.skipped for r in results),
            total_duration=duration,
            results=results,
        )

    @property
    def failed_feeds(self) -> int:
        return self.total_feeds - self.successful_feeds


class ImportStats(BaseModel):
    """Scheduler run statistics."""

    last_run: Optional[datetime] = Field(None, description="When the last run finished")
    total_imports: int = Field(0, description="Runs attempted")
    successful_imports: int = Field(0, description="Runs that completed")
    failed_imports: int = Field(0, description="Runs that failed after retries")
    average_run_time: float = Field(0.0, description="Running average run time in seconds")
