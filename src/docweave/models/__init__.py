"""Data models for docweave"""

from .content import (
    ApiEndpoint,
    CodeExample,
    ContentFormat,
    CrawledContent,
    HTTPMethod,
    Parameter,
    ParameterLocation,
    Schema,
)
from .index import (
    ApiRelationship,
    EntityType,
    IndexedCodeExample,
    IndexedConcept,
    IndexedDocument,
    IndexedEndpoint,
    IndexedSchema,
    IndexSearchFilters,
    IndexSearchResult,
    IndexStats,
    IntegrationPattern,
    IntegrationStep,
    RelationshipType,
)
from .jobs import CrawlerJob, JobStatus, SchedulerStats
from .storage import (
    DocumentMetadata,
    DocumentSearchResult,
    DocumentVersion,
    SearchOptions,
    StoredCodeExample,
    StoredDocument,
    StoredEndpoint,
    StoredSchema,
    StoreStats,
)

__all__ = [
    "ContentFormat",
    "CrawledContent",
    "ApiEndpoint",
    "Parameter",
    "ParameterLocation",
    "HTTPMethod",
    "Schema",
    "CodeExample",
    "StoredDocument",
    "DocumentMetadata",
    "StoredEndpoint",
    "StoredSchema",
    "StoredCodeExample",
    "DocumentVersion",
    "SearchOptions",
    "DocumentSearchResult",
    "StoreStats",
    "EntityType",
    "RelationshipType",
    "IndexedEndpoint",
    "IndexedSchema",
    "IndexedCodeExample",
    "IndexedConcept",
    "IndexedDocument",
    "ApiRelationship",
    "IntegrationPattern",
    "IntegrationStep",
    "IndexSearchFilters",
    "IndexSearchResult",
    "IndexStats",
    "CrawlerJob",
    "JobStatus",
    "SchedulerStats",
]
