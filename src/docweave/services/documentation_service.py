"""
Facade wiring fetcher, store, indexer and scheduler together.

This is the surface a tool-dispatch layer or the CLI talks to. On
initialization the store is loaded from disk and the in-memory index is
rebuilt from the stored documents.
"""

import logging

from docweave.config import CrawlerConfig, Settings, get_settings, load_crawler_config
from docweave.models import (
    DocumentSearchResult,
    IndexSearchFilters,
    IndexSearchResult,
    IndexStats,
    IntegrationPattern,
    SchedulerStats,
    SearchOptions,
    StoreStats,
)

from .document_store import DocumentationStore
from .fetcher import DocumentationFetcher
from .indexer import DocumentationIndexer
from .scheduler import CrawlerScheduler

logger = logging.getLogger(__name__)


class DocumentationService:
    """
    Single entry point over the documentation ingestion core.

    Example:
        >>> async with DocumentationService() as service:
        ...     await service.run_source_jobs("qti")
        ...     results = service.search("assessment", IndexSearchFilters(limit=5))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        config: CrawlerConfig | None = None,
        store: DocumentationStore | None = None,
        fetcher: DocumentationFetcher | None = None,
        indexer: DocumentationIndexer | None = None,
        scheduler: CrawlerScheduler | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.config = config or load_crawler_config(settings=self.settings)
        self.store = store or DocumentationStore(settings=self.settings)
        self.fetcher = fetcher or DocumentationFetcher(config=self.config, settings=self.settings)
        self.indexer = indexer or DocumentationIndexer(settings=self.settings)
        self.scheduler = scheduler or CrawlerScheduler(
            self.fetcher, self.store, config=self.config, indexer=self.indexer, settings=self.settings
        )

    async def __aenter__(self) -> "DocumentationService":
        self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def initialize(self) -> None:
        """Load persisted documents and rebuild the index from them."""
        self.store.initialize()
        self.rebuild_index()

    def rebuild_index(self) -> int:
        """Re-index every stored document. Returns the number indexed."""
        self.indexer.clear()
        return self.indexer.index_batch(doc.to_crawled_content() for doc in self.store.list_documents())

    def start(self, run_immediately: bool = False) -> None:
        """Start the cadence-driven crawl loop."""
        if not self.store.initialized:
            self.initialize()
        self.scheduler.start(run_immediately=run_immediately)

    async def stop(self) -> None:
        """Stop the scheduler and release rendering sessions."""
        await self.scheduler.stop()
        await self.fetcher.close()

    # Outer-layer operations

    def search(self, query: str, filters: IndexSearchFilters | None = None) -> list[IndexSearchResult]:
        return self.indexer.search(query, filters)

    def search_documents(self, query: str, options: SearchOptions | None = None) -> list[DocumentSearchResult]:
        return self.store.search(query, options)

    def get_index_stats(self) -> IndexStats:
        return self.indexer.get_stats()

    def get_store_stats(self) -> StoreStats:
        return self.store.get_stats()

    def get_integration_patterns(self) -> list[IntegrationPattern]:
        return self.indexer.get_integration_patterns()

    async def run_job_now(self, job_id: str) -> bool:
        return await self.scheduler.run_job_now(job_id)

    async def run_source_jobs(self, source: str) -> int:
        return await self.scheduler.run_source_jobs(source)

    async def run_all_jobs(self) -> bool:
        return await self.scheduler.run_jobs()

    def get_scheduler_stats(self) -> SchedulerStats:
        return self.scheduler.get_stats()

    # Maintenance

    def delete_document(self, document_id: str) -> bool:
        document = self.store.get_document(document_id)
        if document is None:
            return False
        self.store.delete_document(document_id)
        self.indexer.remove_document(document.url)
        return True

    def clear(self) -> int:
        """Delete every stored document and empty the index."""
        removed = self.store.clear()
        self.indexer.clear()
        logger.info(f"Cleared {removed} documents")
        return removed
