"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("newsdesk", description="Database name")
    user: str = Field("newsdesk_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class ImporterSettings(BaseModel):
    """Tuning knobs for the import pipeline."""

    fetch_timeout: float = Field(15.0, description="Feed request timeout in seconds", gt=0)
    max_redirects: int = Field(3, description="Redirects followed per feed request", ge=0)
    cache_ttl_seconds: float = Field(300.0, description="Fresh cache lifetime per URL", ge=0)
    cache_max_entries: int = Field(50, description="Cache size cap enforced when pruning", ge=1)
    cache_prune_interval_seconds: float = Field(600.0, description="How often the cache is pruned", gt=0)
    min_request_interval_seconds: float = Field(
        30.0, description="Minimum spacing between requests to the same URL", ge=0
    )
    batch_size: int = Field(2, description="Feeds processed concurrently", ge=1)
    batch_delay_seconds: float = Field(0.5, description="Pause between feed batches", ge=0)
    similarity_window_days: int = Field(3, description="Days of stored posts compared for similarity", ge=1)
    local_fallback_keywords: List[str] = Field(
        default_factory=lambda: ["albuquerque", "new mexico", " nm "],
        description="Markers that keep local content even without a configured keyword match",
    )
    admin_email: str = Field("admin@abqhotspot.com", description="Preferred author account for imports")
    default_category_name: str = Field("RSS News", description="Category created when none exists")
    default_category_slug: str = Field("rss-news", description="Slug of the fallback category")


class SchedulerSettings(BaseModel):
    """Periodic import scheduling."""

    enabled: bool = Field(False, description="Run imports on a schedule")
    cron_pattern: str = Field("0 */4 * * *", description="Cron expression for scheduled runs")
    timezone: str = Field("America/Denver", description="Timezone the cron pattern is evaluated in")
    max_retries: int = Field(3, description="Attempts per scheduled run", ge=1)
    retry_delay_seconds: float = Field(5.0, description="Delay between attempts", ge=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level for the newsdesk logger")


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    importer: ImporterSettings = Field(default_factory=ImporterSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class FeedConfig(BaseModel):
    """A single RSS source from feeds.yaml."""

    name: str = Field(..., description="Unique source name", min_length=1)
    url: str = Field(..., description="RSS feed URL", min_length=1)
    enabled: bool = Field(True, description="Whether the feed is imported")
    max_items: int = Field(10, description="Items considered per run", ge=1)
    keywords: List[str] = Field(default_factory=list, description="Any match marks an item as relevant")
    exclude_keywords: List[str] = Field(default_factory=list, description="Any bounded match rejects an item")
    priority_keywords: List[str] = Field(
        default_factory=list, description="Any match accepts an item regardless of other filters"
    )
    allow_duplicates_from_different_sources: bool = Field(
        False, description="Skip cross-source similarity checks"
    )
    max_duplicate_age_hours: Optional[int] = Field(
        None, description="Re-import an identical item once the stored copy is older than this", ge=1
    )
    content_similarity_threshold: float = Field(
        1.0, description="Similarity at or above which an item is a duplicate", ge=0.0, le=1.0
    )

    model_config = {"frozen": True}

    @field_validator("keywords", "exclude_keywords", "priority_keywords")
    @classmethod
    def drop_blank_keywords(cls, v: List[str]) -> List[str]:
        """Empty keywords would match everything."""
        return [k for k in v if k and k.strip()]
