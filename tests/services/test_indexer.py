"""Tests for the relationship and concept indexer"""

import pytest

from docweave.config import Settings
from docweave.models import (
    ApiEndpoint,
    CodeExample,
    EntityType,
    HTTPMethod,
    IndexSearchFilters,
    RelationshipType,
    Schema,
)
from docweave.services import DocumentationIndexer
from docweave.services.indexer import match_concepts, search_relevance
from docweave.services.integration_patterns import build_prerequisites, build_steps


@pytest.fixture
def indexer(settings: Settings) -> DocumentationIndexer:
    return DocumentationIndexer(settings=settings)


def _endpoint(path: str, summary: str, method: HTTPMethod = HTTPMethod.GET) -> ApiEndpoint:
    return ApiEndpoint(path=path, method=method, summary=summary)


class TestHelpers:
    def test_match_concepts(self) -> None:
        matches = match_concepts("Send a student event to the sensor")
        assert matches["Student"] == ["student"]
        assert matches["Analytics"] == ["event"]
        assert matches["Caliper"] == ["event", "sensor"]
        assert "Grade" not in matches

    def test_search_relevance(self) -> None:
        assert search_relevance(["roster"], "oneroster roster sync") == 1.0
        # "students" is not in the text, but contains the word "student"
        assert search_relevance(["students"], "get student") == pytest.approx(0.3)
        assert search_relevance(["grade"], "list users") == 0.0
        assert search_relevance([], "anything") == 0.0


class TestEndpointRelationships:
    """Tests for cross-source endpoint linking"""

    def test_similar_endpoints_below_default_threshold(self, indexer: DocumentationIndexer, make_content) -> None:
        """Same method, disjoint paths, two of three summary words: score 0.5"""
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="oneroster",
                             endpoints=[_endpoint("/users", "list registered students")]),
                make_content(url="https://b.example.com", source="caliper",
                             endpoints=[_endpoint("/students", "list enrolled students")]),
            ]
        )

        assert indexer.get_relationships() == []

    def test_linked_with_lower_threshold(self, settings: Settings, make_content) -> None:
        indexer = DocumentationIndexer(settings=settings, endpoint_threshold=0.45)
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="oneroster",
                             endpoints=[_endpoint("/users", "list registered students")]),
                make_content(url="https://b.example.com", source="caliper",
                             endpoints=[_endpoint("/students", "list enrolled students")]),
            ]
        )

        relationships = indexer.get_relationships()
        assert len(relationships) == 1
        assert relationships[0].type == RelationshipType.SIMILAR_ENDPOINT
        assert relationships[0].similarity == pytest.approx(0.5)

    def test_links_are_mutual_and_cross_source(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="oneroster",
                             endpoints=[_endpoint("/students", "List students")]),
                make_content(url="https://b.example.com", source="caliper",
                             endpoints=[_endpoint("/students/{id}", "Get a student")]),
            ]
        )

        first, second = indexer.get_endpoints()
        assert first.related_ids == [second.id]
        assert second.related_ids == [first.id]
        relationship = indexer.get_relationships()[0]
        assert relationship.source_api != relationship.target_api
        assert relationship.similarity == pytest.approx(0.7)

    def test_same_source_never_linked(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="qti",
                             endpoints=[_endpoint("/students", "List students")]),
                make_content(url="https://b.example.com", source="qti",
                             endpoints=[_endpoint("/students/{id}", "List students")]),
            ]
        )

        assert indexer.get_relationships() == []
        assert all(e.related_ids == [] for e in indexer.get_endpoints())

    def test_relationship_source_filter(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="oneroster",
                             endpoints=[_endpoint("/students", "List students")]),
                make_content(url="https://b.example.com", source="caliper",
                             endpoints=[_endpoint("/students/{id}", "Get a student")]),
            ]
        )
        relationship = indexer.get_relationships()[0]

        assert indexer.get_relationships(source_api=relationship.source_api) == [relationship]
        assert indexer.get_relationships(source_api="qti") == []


class TestSchemaAndCodeRelationships:
    def test_similar_schemas(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="oneroster",
                             schemas=[Schema(name="Student", properties={"id": {}, "name": {}})]),
                make_content(url="https://b.example.com", source="qti",
                             schemas=[Schema(name="Student", properties={"id": {}, "name": {}, "grade": {}})]),
            ]
        )

        relationships = indexer.get_relationships()
        assert [r.type for r in relationships] == [RelationshipType.SIMILAR_SCHEMA]
        # 0.4 for the name plus 0.6 * 2/3 for properties
        assert relationships[0].similarity == pytest.approx(0.8)

    def test_similar_code_examples_are_cross_referenced(self, indexer: DocumentationIndexer, make_content) -> None:
        code = "const response = await client.fetchStudents(token)"
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="oneroster",
                             code_examples=[CodeExample(language="javascript", code=code)]),
                make_content(url="https://b.example.com", source="caliper",
                             code_examples=[CodeExample(language="javascript", code=code + ";")]),
            ]
        )

        first, second = indexer.get_code_examples()
        assert first.related_ids == [second.id]
        assert indexer.get_relationships() == []

    def test_code_examples_by_language(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(code_examples=[
                    CodeExample(language="python", code="requests.get(url)"),
                    CodeExample(language="curl", code="curl https://x"),
                ])
            ]
        )

        assert [c.example.language for c in indexer.get_code_examples(language="curl")] == ["curl"]
        assert indexer.get_code_examples(source="caliper") == []


class TestConcepts:
    def test_concepts_merge_across_sources(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="qti", content="student assessment"),
                make_content(url="https://b.example.com", source="caliper", content="student event"),
            ]
        )

        concepts = {c.name: c for c in indexer.get_concepts()}
        assert set(concepts) == {"Student", "Assessment", "Analytics", "Caliper"}
        assert concepts["Student"].sources == ["qti", "caliper"]
        assert concepts["Assessment"].sources == ["qti"]
        # Analytics and Caliper share the "event" keyword
        assert concepts["Caliper"].id in concepts["Analytics"].related_ids
        assert concepts["Analytics"].id in concepts["Caliper"].related_ids


class TestIndexing:
    def test_reindex_replaces_entities(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch([make_content(endpoints=[_endpoint("/old", "Old")])])
        indexer.index_batch([make_content(endpoints=[_endpoint("/new", "New")])])

        assert [e.endpoint.path for e in indexer.get_endpoints()] == ["/new"]
        assert len(indexer.get_indexed_documents()) == 1

    def test_invalid_items_are_skipped(self, indexer: DocumentationIndexer, make_content) -> None:
        valid = make_content().model_dump()
        count = indexer.index_batch([{"url": "https://broken.example.com"}, valid])

        assert count == 1
        assert indexer.get_stats().total_documents == 1

    def test_remove_document(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="oneroster",
                             endpoints=[_endpoint("/students", "List students")]),
                make_content(url="https://b.example.com", source="caliper",
                             endpoints=[_endpoint("/students/{id}", "Get a student")]),
            ]
        )

        assert indexer.remove_document("https://b.example.com") is True
        assert [e.source for e in indexer.get_endpoints()] == ["oneroster"]
        assert indexer.get_endpoints()[0].related_ids == []
        assert indexer.get_relationships() == []
        assert indexer.remove_document("https://b.example.com") is False

    def test_shared_entity_survives_removal_of_one_url(self, indexer: DocumentationIndexer, make_content) -> None:
        endpoint = _endpoint("/tests", "List tests")
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", endpoints=[endpoint]),
                make_content(url="https://b.example.com", endpoints=[endpoint]),
            ]
        )

        indexer.remove_document("https://a.example.com")

        assert len(indexer.get_endpoints()) == 1

    def test_clear(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch([make_content(endpoints=[_endpoint("/tests", "List tests")])])

        indexer.clear()

        stats = indexer.get_stats()
        assert stats.total_endpoints == 0
        assert stats.total_documents == 0
        assert stats.total_integration_patterns == 4
        assert stats.last_indexed is None


class TestSearch:
    """Tests for index search"""

    def test_limit_and_order(self, indexer: DocumentationIndexer, make_content) -> None:
        endpoints = [_endpoint(f"/assessments/{i}", f"Assessment number {i}") for i in range(12)]
        indexer.index_batch([make_content(endpoints=endpoints, content="items")])

        results = indexer.search("assessment", IndexSearchFilters(limit=5))

        assert len(results) == 5
        scores = [r.relevance_score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(r.type == EntityType.ENDPOINT for r in results)

    def test_type_and_source_filters(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [
                make_content(url="https://a.example.com", source="qti", content="grade",
                             schemas=[Schema(name="Grade")]),
                make_content(url="https://b.example.com", source="oneroster", content="grade",
                             endpoints=[_endpoint("/grades", "List grades")]),
            ]
        )

        schemas = indexer.search("grade", IndexSearchFilters(types=[EntityType.SCHEMA]))
        oneroster = indexer.search("grade", IndexSearchFilters(sources=["oneroster"]))

        assert [r.title for r in schemas] == ["Grade"]
        assert {r.type for r in oneroster} == {EntityType.ENDPOINT, EntityType.CONCEPT}
        assert "path" in next(r for r in oneroster if r.type == EntityType.ENDPOINT).matched_fields

    def test_irrelevant_entities_are_excluded(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch([make_content(endpoints=[_endpoint("/events", "Send events")], content="x")])

        assert indexer.search("gradebook") == []
        assert indexer.search("") == []


class TestIntegrationPatterns:
    def test_catalog(self, indexer: DocumentationIndexer) -> None:
        patterns = {p.name: p for p in indexer.get_integration_patterns()}

        assert set(patterns) == {
            "Student Data Sync",
            "Assessment Workflow",
            "Standards Alignment",
            "Learning Analytics Pipeline",
        }
        sync = patterns["Student Data Sync"]
        assert [s.source for s in sync.steps] == ["oneroster", "qti", "caliper"]
        assert [s.order for s in sync.steps] == [1, 2, 3]
        assert sync.prerequisites[0] == "OAuth2 client credentials"

    def test_code_examples_attached_by_source(self, indexer: DocumentationIndexer, make_content) -> None:
        indexer.index_batch(
            [make_content(source="case", code_examples=[CodeExample(language="curl", code="curl https://case/x")])]
        )
        example_id = indexer.get_code_examples()[0].id

        patterns = {p.name: p for p in indexer.get_integration_patterns()}
        assert patterns["Standards Alignment"].code_example_ids == [example_id]
        assert patterns["Student Data Sync"].code_example_ids == []

    def test_step_helpers(self) -> None:
        assert [s.endpoint_hint for s in build_steps(["caliper", "case"])] == ["/CFDocuments", "/events"]
        assert build_prerequisites(["qti", "unknown"]) == ["OAuth2 client credentials", "QTI API access"]
