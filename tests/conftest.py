"""Shared fixtures"""

from datetime import datetime, timezone

import pytest

from docweave.config import CrawlerConfig, RateLimitPolicy, RetryPolicy, Settings, SourceUrl
from docweave.models import (
    ApiEndpoint,
    CodeExample,
    ContentFormat,
    CrawledContent,
    Schema,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment and any .env file"""
    return Settings(
        _env_file=None,
        store_path=str(tmp_path / "store"),
        crawler_retry_delay=0,
        crawler_delay_between_requests=0,
        crawler_requests_per_minute=60000,
        shutdown_timeout=5.0,
    )


@pytest.fixture
def crawler_config() -> CrawlerConfig:
    """Two sources, three URLs, no delays"""
    return CrawlerConfig(
        sources={
            "qti": [
                SourceUrl(url="https://qti.example.com/docs/", format=ContentFormat.STRUCTURED_API_REFERENCE, priority=2),
            ],
            "oneroster": [
                SourceUrl(url="https://api.example.com/scalar/", format=ContentFormat.INTERACTIVE_REFERENCE, priority=1),
                SourceUrl(url="https://docs.google.com/document/d/roster", priority=3),
            ],
        },
        retry=RetryPolicy(max_retries=3, retry_delay=0, backoff_multiplier=2.0),
        rate_limit=RateLimitPolicy(requests_per_minute=60000, delay_between_requests=0),
        timeout=5000,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 6, 12, 0, tzinfo=timezone.utc)  # a Wednesday


def _make_content(
    url: str = "https://qti.example.com/docs/",
    content: str = "Assessment tests and items",
    source: str = "qti",
    title: str = "QTI API",
    endpoints: list[ApiEndpoint] | None = None,
    schemas: list[Schema] | None = None,
    code_examples: list[CodeExample] | None = None,
) -> CrawledContent:
    return CrawledContent(
        url=url,
        title=title,
        content=content,
        format=ContentFormat.STRUCTURED_API_REFERENCE,
        source=source,
        endpoints=endpoints or [],
        schemas=schemas or [],
        code_examples=code_examples or [],
    )


@pytest.fixture
def make_content():
    """Factory for CrawledContent with sensible defaults"""
    return _make_content
