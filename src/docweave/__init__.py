"""docweave - documentation ingestion, versioning and cross-source indexing

This is the core library that provides:
- DocumentationFetcher: Format-aware fetching with rate limiting and retries
- DocumentationStore: Versioned, content-addressed storage with full-text search
- DocumentationIndexer: Cross-source relationships, concepts and integration patterns
- CrawlerScheduler: Cadence-driven crawl jobs with backoff retries
"""

from docweave.services import (
    CrawlerScheduler,
    DocumentationFetcher,
    DocumentationIndexer,
    DocumentationService,
    DocumentationStore,
)

__version__ = "0.1.0"

__all__ = [
    "CrawlerScheduler",
    "DocumentationFetcher",
    "DocumentationIndexer",
    "DocumentationService",
    "DocumentationStore",
]
