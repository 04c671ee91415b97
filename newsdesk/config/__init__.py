"""Configuration management for newsdesk."""

from .loader import Config, load_config, load_feeds, save_config, save_feeds
from .models import (
    ConfigModel,
    FeedConfig,
    ImporterSettings,
    LoggingConfig,
    PostgresConfig,
    SchedulerSettings,
)

__all__ = [
    "Config",
    "ConfigModel",
    "FeedConfig",
    "ImporterSettings",
    "LoggingConfig",
    "PostgresConfig",
    "SchedulerSettings",
    "load_config",
    "load_feeds",
    "save_config",
    "save_feeds",
]
