"""Relationship index data models"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .content import ApiEndpoint, CodeExample, ContentFormat, Schema, utc_now


class EntityType(str, Enum):
    """Kinds of indexed entities"""

    ENDPOINT = "endpoint"
    SCHEMA = "schema"
    CODE_EXAMPLE = "code_example"
    CONCEPT = "concept"


class RelationshipType(str, Enum):
    """Kinds of cross-source edges"""

    SIMILAR_ENDPOINT = "similar_endpoint"
    SIMILAR_SCHEMA = "similar_schema"
    SIMILAR_CODE_EXAMPLE = "similar_code_example"
    INTEGRATION_PATTERN_LINK = "integration_pattern_link"


class IndexedEndpoint(BaseModel):
    id: str
    source: str
    document_url: str
    endpoint: ApiEndpoint
    searchable_text: str
    related_ids: list[str] = Field(default_factory=list)


class IndexedSchema(BaseModel):
    id: str
    source: str
    document_url: str
    definition: Schema
    searchable_text: str
    related_ids: list[str] = Field(default_factory=list)


class IndexedCodeExample(BaseModel):
    id: str
    source: str
    document_url: str
    example: CodeExample
    searchable_text: str
    related_ids: list[str] = Field(default_factory=list)


class IndexedConcept(BaseModel):
    """Dictionary-derived topical label merged across sources"""

    id: str
    name: str
    description: str
    keywords: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    searchable_text: str = ""
    related_ids: list[str] = Field(default_factory=list)


class IndexedDocument(BaseModel):
    """Per-URL bookkeeping used to drop stale entities on re-index"""

    url: str
    title: str
    source: str
    format: ContentFormat
    endpoint_ids: list[str] = Field(default_factory=list)
    schema_ids: list[str] = Field(default_factory=list)
    code_example_ids: list[str] = Field(default_factory=list)
    concepts: dict[str, list[str]] = Field(default_factory=dict)  # concept name -> matched keywords
    indexed_at: datetime = Field(default_factory=utc_now)


class ApiRelationship(BaseModel):
    """Scored edge between two entities from different sources"""

    id: str
    source_api: str
    target_api: str
    type: RelationshipType
    source_id: str
    target_id: str
    similarity: float = Field(ge=0.0, le=1.0)
    description: str

    @model_validator(mode="after")
    def _check_cross_source(self) -> "ApiRelationship":
        if self.source_api == self.target_api:
            raise ValueError("relationships must connect two different sources")
        return self


class IntegrationStep(BaseModel):
    order: int
    source: str
    action: str
    endpoint_hint: str | None = None
    description: str


class IntegrationPattern(BaseModel):
    """Authored multi-step procedure spanning several sources"""

    id: str
    name: str
    description: str
    sources: list[str]
    steps: list[IntegrationStep] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    difficulty: Literal["beginner", "intermediate", "advanced"] = "intermediate"
    code_example_ids: list[str] = Field(default_factory=list)


class IndexSearchFilters(BaseModel):
    """Filters for index search"""

    sources: list[str] | None = None
    types: list[EntityType] | None = None
    limit: int = Field(default=50, ge=0)


class IndexSearchResult(BaseModel):
    """A ranked hit over any indexed entity type"""

    id: str
    type: EntityType
    source: str | None = None
    title: str
    content: str
    relevance_score: float
    matched_fields: list[str] = Field(default_factory=list)


class IndexStats(BaseModel):
    """Aggregate counts over the index"""

    total_documents: int = 0
    total_endpoints: int = 0
    total_schemas: int = 0
    total_code_examples: int = 0
    total_concepts: int = 0
    total_relationships: int = 0
    total_integration_patterns: int = 0
    source_breakdown: dict[str, int] = Field(default_factory=dict)
    last_indexed: datetime | None = None
