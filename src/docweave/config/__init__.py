"""Configuration management for docweave"""

from .settings import Settings, get_settings
from .sources import (
    CrawlerConfig,
    RateLimitPolicy,
    RetryPolicy,
    SchedulePolicy,
    SourceUrl,
    default_crawler_config,
    load_crawler_config,
)

__all__ = [
    "Settings",
    "get_settings",
    "CrawlerConfig",
    "RateLimitPolicy",
    "RetryPolicy",
    "SchedulePolicy",
    "SourceUrl",
    "default_crawler_config",
    "load_crawler_config",
]
