"""
Relationship and concept indexer.

Turns batches of fetched content into per-entity records, links similar
entities across sources, tags content with dictionary concepts and keeps the
integration pattern catalog pointing at matching code examples. All state
lives on the indexer instance.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from docweave.config import Settings, get_settings
from docweave.core import (
    code_similarity,
    endpoint_similarity,
    schema_similarity,
    stable_id,
    tokenize,
)
from docweave.exceptions import ParseError
from docweave.models import (
    ApiRelationship,
    CrawledContent,
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
    RelationshipType,
)
from docweave.models.content import utc_now

from .integration_patterns import default_integration_patterns

logger = logging.getLogger(__name__)

CONCEPT_KEYWORDS: dict[str, list[str]] = {
    "Authentication": ["auth", "oauth", "token", "login", "credential"],
    "Student": ["student", "learner", "user", "person", "candidate"],
    "Assessment": ["assessment", "test", "quiz", "exam", "evaluation"],
    "Grade": ["grade", "score", "result", "mark", "rating"],
    "Course": ["course", "class", "subject", "curriculum"],
    "Enrollment": ["enrollment", "registration", "enroll", "register"],
    "Analytics": ["analytics", "tracking", "event", "activity", "metric"],
    "Standards": ["standard", "competency", "skill", "objective", "outcome"],
    "Roster": ["roster", "list", "membership", "participant"],
    "Caliper": ["caliper", "event", "profile", "entity", "sensor"],
}

MIN_RELEVANCE = 0.1
PARTIAL_MATCH_WEIGHT = 0.3


def match_concepts(text: str) -> dict[str, list[str]]:
    """
    Find dictionary concepts whose keywords occur in text.

    Returns:
        Concept name -> matched keywords, for concepts with at least one match
    """
    text_lower = text.lower()
    matches = {}
    for name, keywords in CONCEPT_KEYWORDS.items():
        found = [keyword for keyword in keywords if keyword in text_lower]
        if found:
            matches[name] = found
    return matches


def search_relevance(query_tokens: list[str], text: str) -> float:
    """
    Score text against query tokens.

    Each token contributes 1 when it occurs in the text, otherwise 0.3 per
    text token that contains it or is contained by it. The result is the
    mean contribution.
    """
    if not query_tokens:
        return 0.0
    text_tokens = tokenize(text)
    score = 0.0
    for token in query_tokens:
        if token in text:
            score += 1
        else:
            partial = sum(1 for word in text_tokens if token in word or word in token)
            score += PARTIAL_MATCH_WEIGHT * partial
    return score / len(query_tokens)


class DocumentationIndexer:
    """
    In-memory index of endpoints, schemas, code examples and concepts.

    Example:
        >>> indexer = DocumentationIndexer()
        >>> indexer.index_batch(contents)
        >>> indexer.search("assessment", IndexSearchFilters(limit=5))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        endpoint_threshold: float | None = None,
        schema_threshold: float | None = None,
        code_threshold: float | None = None,
    ) -> None:
        """
        Args:
            settings: Settings instance (defaults to the cached settings)
            endpoint_threshold: Minimum exclusive score for similar endpoints
            schema_threshold: Minimum exclusive score for similar schemas
            code_threshold: Minimum exclusive score for cross-referenced examples
        """
        settings = settings or get_settings()
        self.endpoint_threshold = (
            settings.endpoint_similarity_threshold if endpoint_threshold is None else endpoint_threshold
        )
        self.schema_threshold = (
            settings.schema_similarity_threshold if schema_threshold is None else schema_threshold
        )
        self.code_threshold = settings.code_similarity_threshold if code_threshold is None else code_threshold

        self._documents: dict[str, IndexedDocument] = {}
        self._endpoints: dict[str, IndexedEndpoint] = {}
        self._schemas: dict[str, IndexedSchema] = {}
        self._code_examples: dict[str, IndexedCodeExample] = {}
        self._concepts: dict[str, IndexedConcept] = {}
        self._relationships: dict[str, ApiRelationship] = {}
        self._patterns: dict[str, IntegrationPattern] = {p.id: p for p in default_integration_patterns()}
        self.last_indexed: datetime | None = None

    # Indexing

    def index_batch(self, contents: Iterable[CrawledContent | dict[str, Any]]) -> int:
        """
        Index a batch of fetched content, then rebuild concepts and relationships.

        Items that fail validation are logged and skipped. Re-indexing a URL
        replaces the entities it contributed before.

        Returns:
            Number of items indexed
        """
        indexed = 0
        for item in contents:
            try:
                content = item if isinstance(item, CrawledContent) else CrawledContent.model_validate(item)
                self._index_content(content)
                indexed += 1
            except (ParseError, ValidationError, ValueError) as e:
                url = item.get("url", "?") if isinstance(item, dict) else getattr(item, "url", "?")
                logger.warning(f"Skipping unindexable content {url}: {e}")

        self._rebuild()
        self.last_indexed = utc_now()
        logger.info(
            f"Indexed {indexed} items: {len(self._endpoints)} endpoints, {len(self._schemas)} schemas, "
            f"{len(self._code_examples)} code examples, {len(self._relationships)} relationships"
        )
        return indexed

    def remove_document(self, url: str) -> bool:
        """Drop everything a URL contributed and rebuild relationships."""
        if url not in self._documents:
            return False
        self._drop_document(url)
        self._rebuild()
        return True

    def clear(self) -> None:
        """Reset the index to an empty state with the authored pattern catalog."""
        self._documents.clear()
        self._endpoints.clear()
        self._schemas.clear()
        self._code_examples.clear()
        self._concepts.clear()
        self._relationships.clear()
        self._patterns = {p.id: p for p in default_integration_patterns()}
        self.last_indexed = None
        logger.info("Documentation index cleared")

    # Queries

    def search(self, query: str, filters: IndexSearchFilters | None = None) -> list[IndexSearchResult]:
        """
        Rank indexed entities of every type against a query.

        Args:
            query: Free-text query
            filters: Source, type and limit filters

        Returns:
            Results above the minimum relevance, sorted by descending relevance
        """
        filters = filters or IndexSearchFilters()
        tokens = list(dict.fromkeys(tokenize(query)))
        if not tokens:
            return []

        types = set(filters.types) if filters.types else set(EntityType)
        candidates: list[tuple[EntityType, Any]] = []
        if EntityType.ENDPOINT in types:
            candidates.extend((EntityType.ENDPOINT, e) for e in self._endpoints.values())
        if EntityType.SCHEMA in types:
            candidates.extend((EntityType.SCHEMA, s) for s in self._schemas.values())
        if EntityType.CODE_EXAMPLE in types:
            candidates.extend((EntityType.CODE_EXAMPLE, c) for c in self._code_examples.values())
        if EntityType.CONCEPT in types:
            candidates.extend((EntityType.CONCEPT, c) for c in self._concepts.values())

        results: list[IndexSearchResult] = []
        for entity_type, entity in candidates:
            if filters.sources and not self._in_sources(entity_type, entity, filters.sources):
                continue
            relevance = search_relevance(tokens, entity.searchable_text)
            if relevance <= MIN_RELEVANCE:
                continue
            results.append(self._to_result(entity_type, entity, relevance, tokens))

        results.sort(key=lambda result: (-result.relevance_score, result.id))
        return results[: filters.limit]

    def get_endpoints(self, source: str | None = None) -> list[IndexedEndpoint]:
        return [e for e in self._endpoints.values() if source is None or e.source == source]

    def get_schemas(self, source: str | None = None) -> list[IndexedSchema]:
        return [s for s in self._schemas.values() if source is None or s.source == source]

    def get_code_examples(self, source: str | None = None, language: str | None = None) -> list[IndexedCodeExample]:
        return [
            c
            for c in self._code_examples.values()
            if (source is None or c.source == source) and (language is None or c.example.language == language)
        ]

    def get_concepts(self) -> list[IndexedConcept]:
        return list(self._concepts.values())

    def get_relationships(self, source_api: str | None = None, target_api: str | None = None) -> list[ApiRelationship]:
        return [
            r
            for r in self._relationships.values()
            if (source_api is None or r.source_api == source_api)
            and (target_api is None or r.target_api == target_api)
        ]

    def get_integration_patterns(self) -> list[IntegrationPattern]:
        return list(self._patterns.values())

    def get_indexed_documents(self) -> list[IndexedDocument]:
        return list(self._documents.values())

    def get_stats(self) -> IndexStats:
        breakdown: dict[str, int] = {}
        for document in self._documents.values():
            breakdown[document.source] = breakdown.get(document.source, 0) + 1
        return IndexStats(
            total_documents=len(self._documents),
            total_endpoints=len(self._endpoints),
            total_schemas=len(self._schemas),
            total_code_examples=len(self._code_examples),
            total_concepts=len(self._concepts),
            total_relationships=len(self._relationships),
            total_integration_patterns=len(self._patterns),
            source_breakdown=breakdown,
            last_indexed=self.last_indexed,
        )

    # Internals

    def _index_content(self, content: CrawledContent) -> None:
        if not content.url:
            raise ParseError("Content has no URL")

        self._drop_document(content.url)
        source = content.source
        document = IndexedDocument(
            url=content.url, title=content.title, source=source, format=content.format
        )

        for endpoint in content.endpoints:
            entity_id = stable_id(source, "endpoint", endpoint.method.value, endpoint.path)
            text_parts = [
                endpoint.method.value,
                endpoint.path,
                endpoint.summary or "",
                endpoint.description or "",
                *endpoint.tags,
                *(p.name for p in endpoint.parameters),
            ]
            self._endpoints[entity_id] = IndexedEndpoint(
                id=entity_id,
                source=source,
                document_url=content.url,
                endpoint=endpoint,
                searchable_text=" ".join(text_parts).lower(),
            )
            document.endpoint_ids.append(entity_id)

        for schema in content.schemas:
            entity_id = stable_id(source, "schema", schema.name)
            text_parts = [schema.name, schema.description or "", *schema.properties]
            self._schemas[entity_id] = IndexedSchema(
                id=entity_id,
                source=source,
                document_url=content.url,
                definition=schema,
                searchable_text=" ".join(text_parts).lower(),
            )
            document.schema_ids.append(entity_id)

        for example in content.code_examples:
            entity_id = stable_id(source, "example", example.language, example.code)
            text_parts = [example.language, example.description or "", example.context or "", example.code]
            self._code_examples[entity_id] = IndexedCodeExample(
                id=entity_id,
                source=source,
                document_url=content.url,
                example=example,
                searchable_text=" ".join(text_parts).lower(),
            )
            document.code_example_ids.append(entity_id)

        document.concepts = match_concepts(content.content)
        self._documents[content.url] = document

    def _drop_document(self, url: str) -> None:
        document = self._documents.pop(url, None)
        if document is None:
            return
        # Ids are keyed by source and natural key, so another URL of the
        # same source may still provide the entity
        still_referenced = set()
        for other in self._documents.values():
            still_referenced.update(other.endpoint_ids, other.schema_ids, other.code_example_ids)
        for entity_id in document.endpoint_ids:
            if entity_id not in still_referenced:
                self._endpoints.pop(entity_id, None)
        for entity_id in document.schema_ids:
            if entity_id not in still_referenced:
                self._schemas.pop(entity_id, None)
        for entity_id in document.code_example_ids:
            if entity_id not in still_referenced:
                self._code_examples.pop(entity_id, None)

    def _rebuild(self) -> None:
        self._rebuild_concepts()
        self._build_relationships()
        self._enrich_patterns()

    def _rebuild_concepts(self) -> None:
        concepts: dict[str, IndexedConcept] = {}
        for document in self._documents.values():
            for name, keywords in document.concepts.items():
                concept = concepts.get(name)
                if concept is None:
                    concept = IndexedConcept(id=stable_id("concept", name.lower()), name=name, description="")
                    concepts[name] = concept
                if document.source not in concept.sources:
                    concept.sources.append(document.source)
                concept.keywords.extend(k for k in keywords if k not in concept.keywords)

        for concept in concepts.values():
            concept.description = f"{concept.name} concept found in {', '.join(concept.sources)} documentation"
            concept.searchable_text = f"{concept.name} {' '.join(concept.keywords)}".lower()

        # Concepts sharing a keyword (e.g. "event") are related
        ordered = sorted(concepts.values(), key=lambda c: c.id)
        for i, first in enumerate(ordered):
            for second in ordered[i + 1 :]:
                if set(first.keywords) & set(second.keywords):
                    self._link(first, second)

        self._concepts = {concept.id: concept for concept in ordered}

    def _build_relationships(self) -> None:
        self._relationships.clear()
        for entity in (*self._endpoints.values(), *self._schemas.values(), *self._code_examples.values()):
            entity.related_ids = []

        endpoints = sorted(self._endpoints.values(), key=lambda e: e.id)
        for i, first in enumerate(endpoints):
            for second in endpoints[i + 1 :]:
                if first.source == second.source:
                    continue
                score = endpoint_similarity(first.endpoint, second.endpoint)
                if score > self.endpoint_threshold:
                    self._link(first, second)
                    self._add_relationship(
                        RelationshipType.SIMILAR_ENDPOINT,
                        first,
                        second,
                        score,
                        f"Similar endpoints: {first.endpoint.method.value} {first.endpoint.path} ({first.source}) "
                        f"and {second.endpoint.method.value} {second.endpoint.path} ({second.source})",
                    )

        schemas = sorted(self._schemas.values(), key=lambda s: s.id)
        for i, first in enumerate(schemas):
            for second in schemas[i + 1 :]:
                if first.source == second.source:
                    continue
                score = schema_similarity(first.definition, second.definition)
                if score > self.schema_threshold:
                    self._link(first, second)
                    self._add_relationship(
                        RelationshipType.SIMILAR_SCHEMA,
                        first,
                        second,
                        score,
                        f"Similar schemas: {first.definition.name} ({first.source}) "
                        f"and {second.definition.name} ({second.source})",
                    )

        examples = sorted(self._code_examples.values(), key=lambda c: c.id)
        for i, first in enumerate(examples):
            for second in examples[i + 1 :]:
                if first.source == second.source:
                    continue
                if code_similarity(first.example, second.example) > self.code_threshold:
                    self._link(first, second)

    def _enrich_patterns(self) -> None:
        for pattern in self._patterns.values():
            pattern.code_example_ids = [
                example.id for example in self._code_examples.values() if example.source in pattern.sources
            ]

    def _add_relationship(
        self,
        relationship_type: RelationshipType,
        first: IndexedEndpoint | IndexedSchema,
        second: IndexedEndpoint | IndexedSchema,
        score: float,
        description: str,
    ) -> None:
        relationship_id = stable_id(relationship_type.value, first.id, second.id)
        self._relationships[relationship_id] = ApiRelationship(
            id=relationship_id,
            source_api=first.source,
            target_api=second.source,
            type=relationship_type,
            source_id=first.id,
            target_id=second.id,
            similarity=min(score, 1.0),
            description=description,
        )

    @staticmethod
    def _link(first: Any, second: Any) -> None:
        if second.id not in first.related_ids:
            first.related_ids.append(second.id)
        if first.id not in second.related_ids:
            second.related_ids.append(first.id)

    @staticmethod
    def _in_sources(entity_type: EntityType, entity: Any, sources: list[str]) -> bool:
        if entity_type == EntityType.CONCEPT:
            return any(source in sources for source in entity.sources)
        return entity.source in sources

    @staticmethod
    def _to_result(entity_type: EntityType, entity: Any, relevance: float, tokens: list[str]) -> IndexSearchResult:
        if entity_type == EntityType.ENDPOINT:
            endpoint = entity.endpoint
            title = f"{endpoint.method.value} {endpoint.path}"
            content = endpoint.description or endpoint.summary or ""
            fields = {
                "method": endpoint.method.value,
                "path": endpoint.path,
                "summary": endpoint.summary or "",
                "description": endpoint.description or "",
                "tags": " ".join(endpoint.tags),
            }
            source = entity.source
        elif entity_type == EntityType.SCHEMA:
            schema = entity.definition
            title = schema.name
            content = schema.description or ", ".join(schema.properties)
            fields = {
                "name": schema.name,
                "description": schema.description or "",
                "properties": " ".join(schema.properties),
            }
            source = entity.source
        elif entity_type == EntityType.CODE_EXAMPLE:
            example = entity.example
            title = f"{example.language} example"
            content = example.code
            fields = {
                "language": example.language,
                "description": example.description or "",
                "code": example.code,
            }
            source = entity.source
        else:
            title = entity.name
            content = entity.description
            fields = {"name": entity.name, "keywords": " ".join(entity.keywords)}
            source = entity.sources[0] if entity.sources else None

        matched = [name for name, text in fields.items() if any(token in text.lower() for token in tokens)]
        return IndexSearchResult(
            id=entity.id,
            type=entity_type,
            source=source,
            title=title,
            content=content,
            relevance_score=round(relevance, 6),
            matched_fields=matched,
        )
