"""Persisted document data models"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .content import ApiEndpoint, CodeExample, ContentFormat, CrawledContent, Schema, utc_now


class DocumentMetadata(BaseModel):
    """Bookkeeping attached to every stored document"""

    content_hash: str
    version: str = "1.0.0"
    format: ContentFormat
    size: int = 0  # bytes of UTF-8 encoded content
    crawled_at: datetime = Field(default_factory=utc_now)
    last_updated: datetime = Field(default_factory=utc_now)
    extra: dict[str, Any] = Field(default_factory=dict)  # format-specific metadata


class StoredEndpoint(ApiEndpoint):
    """Endpoint embedded in a stored document"""

    id: str
    document_id: str


class StoredSchema(Schema):
    """Schema embedded in a stored document"""

    id: str
    document_id: str


class StoredCodeExample(CodeExample):
    """Code example embedded in a stored document"""

    id: str
    document_id: str


class StoredDocument(BaseModel):
    """Durable, versioned record of one source URL"""

    id: str
    url: str
    source: str
    title: str
    content: str
    metadata: DocumentMetadata
    endpoints: list[StoredEndpoint] = Field(default_factory=list)
    schemas: list[StoredSchema] = Field(default_factory=list)
    code_examples: list[StoredCodeExample] = Field(default_factory=list)

    def to_crawled_content(self) -> CrawledContent:
        """Rebuild the fetcher-shaped view of this document, e.g. to re-seed an index."""
        return CrawledContent(
            url=self.url,
            title=self.title,
            content=self.content,
            format=self.metadata.format,
            source=self.source,
            metadata=dict(self.metadata.extra),
            extracted_at=self.metadata.last_updated,
            endpoints=[
                ApiEndpoint(**e.model_dump(exclude={"id", "document_id"})) for e in self.endpoints
            ],
            schemas=[Schema(**s.model_dump(exclude={"id", "document_id"})) for s in self.schemas],
            code_examples=[
                CodeExample(**c.model_dump(exclude={"id", "document_id"}))
                for c in self.code_examples
            ],
        )


class DocumentVersion(BaseModel):
    """One append-only history entry describing a prior state of a document"""

    version: str
    timestamp: datetime
    content_hash: str
    changes: list[str] = Field(default_factory=list)
    previous_version: str | None = None


class SearchOptions(BaseModel):
    """Filters and pagination for document search"""

    sources: list[str] | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    match_all: bool = False  # intersect token hits instead of union
    limit: int = Field(default=50, ge=0)
    offset: int = Field(default=0, ge=0)

    @field_validator("date_from", "date_to")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        """Naive bounds (such as a plain date) are read as UTC"""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class DocumentSearchResult(BaseModel):
    """A ranked document search hit"""

    document: StoredDocument
    score: float
    matched_fields: list[str] = Field(default_factory=list)
    snippet: str = ""


class StoreStats(BaseModel):
    """Aggregate counts over the store"""

    total_documents: int = 0
    total_endpoints: int = 0
    total_schemas: int = 0
    total_code_examples: int = 0
    source_breakdown: dict[str, int] = Field(default_factory=dict)
    last_updated: datetime | None = None
    storage_size: int = 0
