"""Core library settings loaded from environment variables"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """docweave settings loaded from environment variables or a .env file"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production", "test"] = "development"
    log_level: str = "INFO"

    # Storage Configuration
    store_path: str = "./data/documentation"
    sources_file: str | None = None  # YAML crawler config, built-in sources when unset

    # Crawler Configuration
    crawler_enabled: bool = True
    crawler_timeout: int = 30000  # milliseconds
    crawler_max_retries: int = 3
    crawler_retry_delay: int = 1000  # milliseconds
    crawler_backoff_multiplier: float = 2.0
    crawler_requests_per_minute: int = 30
    crawler_delay_between_requests: int = 1000  # milliseconds
    user_agent: str = "docweave/0.1.0 (Documentation Indexer)"

    # Browser rendering
    headless: bool = True
    browser_formats: list[str] | None = None  # overrides the per-format extractor flags

    # Schedule Configuration
    schedule_interval: Literal["hourly", "daily", "weekly"] = "daily"
    schedule_time: str = "02:00"  # HH:MM, UTC
    shutdown_timeout: float = 60.0  # seconds to wait for an in-flight run on stop

    # Relationship thresholds
    endpoint_similarity_threshold: float = 0.6
    schema_similarity_threshold: float = 0.5
    code_similarity_threshold: float = 0.4


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
