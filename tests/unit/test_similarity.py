"""Tests for similarity heuristics"""

import pytest

from docweave.core.similarity import (
    code_similarity,
    endpoint_similarity,
    overlap_ratio,
    schema_similarity,
)
from docweave.models import ApiEndpoint, CodeExample, HTTPMethod, Schema


class TestOverlapRatio:
    def test_empty_sets(self) -> None:
        assert overlap_ratio(set(), {"a"}) == 0.0
        assert overlap_ratio({"a"}, set()) == 0.0

    def test_divides_by_larger_set(self) -> None:
        assert overlap_ratio({"a", "b"}, {"a", "b", "c", "d"}) == 0.5

    def test_identical_sets(self) -> None:
        assert overlap_ratio({"a", "b"}, {"b", "a"}) == 1.0


class TestEndpointSimilarity:
    def test_same_method_different_path(self) -> None:
        """Method match plus two of three description words"""
        users = ApiEndpoint(path="/users", method=HTTPMethod.GET, summary="list registered students")
        students = ApiEndpoint(path="/students", method=HTTPMethod.GET, summary="list enrolled students")

        assert endpoint_similarity(users, students) == pytest.approx(0.5)

    def test_is_symmetric(self) -> None:
        first = ApiEndpoint(path="/assessmentTests", method=HTTPMethod.GET, summary="List tests")
        second = ApiEndpoint(path="/tests/{id}", method=HTTPMethod.POST, summary="Create tests")
        assert endpoint_similarity(first, second) == endpoint_similarity(second, first)

    def test_identical_endpoints_score_one(self) -> None:
        endpoint = ApiEndpoint(path="/students", method=HTTPMethod.GET, summary="List students")
        assert endpoint_similarity(endpoint, endpoint) == pytest.approx(1.0)

    def test_no_overlap_scores_zero(self) -> None:
        first = ApiEndpoint(path="/users", method=HTTPMethod.GET)
        second = ApiEndpoint(path="/events", method=HTTPMethod.POST)
        assert endpoint_similarity(first, second) == 0.0


class TestSchemaSimilarity:
    def test_name_and_properties(self) -> None:
        first = Schema(name="StudentRecord", properties={"id": {}, "name": {}, "grade": {}})
        second = Schema(name="Student", properties={"ID": {}, "name": {}, "school": {}, "email": {}})

        # name words {student, record} vs {student}: 0.5; properties 2 of 4
        assert schema_similarity(first, second) == pytest.approx(0.4 * 0.5 + 0.6 * 0.5)

    def test_schemas_without_properties(self) -> None:
        first = Schema(name="Score")
        second = Schema(name="Score")
        assert schema_similarity(first, second) == pytest.approx(0.4)


class TestCodeSimilarity:
    def test_different_languages_never_match(self) -> None:
        first = CodeExample(language="python", code="requests.get(students_url)")
        second = CodeExample(language="javascript", code="requests.get(students_url)")
        assert code_similarity(first, second) == 0.0

    def test_language_comparison_ignores_case(self) -> None:
        first = CodeExample(language="Python", code="client.fetch_students(token)")
        second = CodeExample(language="python", code="client.fetch_students(token)")
        assert code_similarity(first, second) == 1.0

    def test_short_words_are_ignored(self) -> None:
        first = CodeExample(language="curl", code="curl -X GET api")
        second = CodeExample(language="curl", code="curl -X GET api")
        assert code_similarity(first, second) == 1.0
        third = CodeExample(language="curl", code="get api")
        assert code_similarity(first, third) == 0.0
