"""
Crawler source configuration.

Sources are declared per logical source id as ordered lists of
``{url, format, priority}`` entries, together with cadence, retry and
rate-limit policies. The configuration is read from a YAML file; when no
file is configured, the built-in source list is used with policies taken
from :class:`~docweave.config.settings.Settings`.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from docweave.core.cadence import ScheduleInterval, parse_time_of_day
from docweave.models import ContentFormat
from docweave.utils import is_valid_url, normalize_url

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


class SourceUrl(BaseModel):
    """One configured URL of a logical source"""

    url: str
    format: ContentFormat | None = None  # detected from the URL when omitted
    priority: int = 1

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        if not is_valid_url(value):
            raise ValueError(f"Invalid source URL: {value!r}")
        return value


class SchedulePolicy(BaseModel):
    interval: ScheduleInterval = "daily"
    time: str = "02:00"

    @field_validator("time")
    @classmethod
    def _validate_time(cls, value: str) -> str:
        parse_time_of_day(value)
        return value


class RetryPolicy(BaseModel):
    max_retries: int = Field(default=3, ge=1)
    retry_delay: int = Field(default=1000, ge=0)  # milliseconds
    backoff_multiplier: float = Field(default=2.0, ge=1.0)


class RateLimitPolicy(BaseModel):
    requests_per_minute: int = Field(default=30, gt=0)
    delay_between_requests: int = Field(default=1000, ge=0)  # milliseconds

    @property
    def min_interval(self) -> float:
        """Minimum spacing in seconds between two outbound fetches."""
        return max(self.delay_between_requests / 1000, 60 / self.requests_per_minute)


class CrawlerConfig(BaseModel):
    """Everything the fetcher and scheduler consume"""

    sources: dict[str, list[SourceUrl]] = Field(default_factory=dict)
    schedule: SchedulePolicy = Field(default_factory=SchedulePolicy)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    rate_limit: RateLimitPolicy = Field(default_factory=RateLimitPolicy)
    timeout: int = Field(default=30000, gt=0)  # milliseconds
    enabled: bool = True

    def source_for_url(self, url: str) -> str | None:
        """Logical source id a configured URL belongs to, if any."""
        key = normalize_url(url)
        for source, entries in self.sources.items():
            if any(normalize_url(entry.url) == key for entry in entries):
                return source
        return None

    def format_for_url(self, url: str) -> ContentFormat | None:
        """Declared format of a configured URL, if any."""
        key = normalize_url(url)
        for entries in self.sources.values():
            for entry in entries:
                if normalize_url(entry.url) == key:
                    return entry.format
        return None


DEFAULT_SOURCES: dict[str, list[dict]] = {
    "qti": [
        {"url": "https://qti.alpha-1edtech.com/docs/", "format": "structured_api_reference", "priority": 1},
        {"url": "https://qti.alpha-1edtech.com/openapi.yaml", "format": "structured_api_reference", "priority": 2},
    ],
    "oneroster": [
        {"url": "https://api.alpha-1edtech.com/scalar/", "format": "interactive_reference", "priority": 1},
        {"url": "https://api.alpha-1edtech.com/openapi.yaml", "format": "structured_api_reference", "priority": 2},
    ],
    "caliper": [
        {"url": "https://caliper.alpha-1edtech.com/", "format": "structured_api_reference", "priority": 1},
    ],
    "powerpath": [
        {"url": "https://api.alpha-1edtech.com/scalar?api=powerpath-api", "format": "interactive_reference", "priority": 1},
    ],
    "case": [
        {"url": "https://api.alpha-1edtech.com/scalar?api=case-api", "format": "interactive_reference", "priority": 1},
    ],
}


def default_crawler_config(settings: Settings | None = None) -> CrawlerConfig:
    """Build a configuration from settings and the built-in source list."""
    settings = settings or get_settings()
    return CrawlerConfig(
        sources=DEFAULT_SOURCES,
        schedule=SchedulePolicy(interval=settings.schedule_interval, time=settings.schedule_time),
        retry=RetryPolicy(
            max_retries=settings.crawler_max_retries,
            retry_delay=settings.crawler_retry_delay,
            backoff_multiplier=settings.crawler_backoff_multiplier,
        ),
        rate_limit=RateLimitPolicy(
            requests_per_minute=settings.crawler_requests_per_minute,
            delay_between_requests=settings.crawler_delay_between_requests,
        ),
        timeout=settings.crawler_timeout,
        enabled=settings.crawler_enabled,
    )


def load_crawler_config(path: str | Path | None = None, settings: Settings | None = None) -> CrawlerConfig:
    """
    Load crawler configuration from a YAML file.

    Keys missing from the file fall back to the values derived from settings,
    so a file may declare only ``sources``.

    Args:
        path: YAML file path (defaults to ``settings.sources_file``)
        settings: Settings instance (defaults to the cached settings)

    Returns:
        Validated CrawlerConfig

    Raises:
        FileNotFoundError: If the configured file does not exist
        ValueError: If the file is not valid YAML or fails validation
    """
    settings = settings or get_settings()
    defaults = default_crawler_config(settings)
    path = path or settings.sources_file
    if not path:
        logger.info("No sources file configured, using built-in sources")
        return defaults

    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Expected a mapping at the top of {path}")

    merged = defaults.model_dump()
    for key, value in raw.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict) and key != "sources":
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value

    try:
        config = CrawlerConfig.model_validate(merged)
    except ValidationError as e:
        raise ValueError(f"Invalid crawler configuration in {path}: {e}") from e

    logger.info(
        f"Loaded crawler config from {path}: {len(config.sources)} sources, "
        f"{sum(len(urls) for urls in config.sources.values())} URLs"
    )
    return config
