"""Stateful services: fetching, storage, indexing and scheduling"""

from .document_store import DocumentationStore
from .documentation_service import DocumentationService
from .fetcher import DocumentationFetcher
from .http_client import HTTPClient
from .indexer import DocumentationIndexer
from .rate_limiter import RateLimiter
from .rendering import BrowserRenderer, HttpRenderer
from .repository import DocumentRepository, FileDocumentRepository, InMemoryDocumentRepository
from .scheduler import CrawlerScheduler

__all__ = [
    "BrowserRenderer",
    "CrawlerScheduler",
    "DocumentationFetcher",
    "DocumentationIndexer",
    "DocumentationService",
    "DocumentationStore",
    "DocumentRepository",
    "FileDocumentRepository",
    "HTTPClient",
    "HttpRenderer",
    "InMemoryDocumentRepository",
    "RateLimiter",
]
