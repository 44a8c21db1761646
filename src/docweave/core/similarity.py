"""Deterministic similarity heuristics for cross-source relationship building"""

from docweave.models import ApiEndpoint, CodeExample, Schema

from .text import identifier_words, tokenize

METHOD_WEIGHT = 0.3
PATH_WEIGHT = 0.4
TEXT_WEIGHT = 0.3

SCHEMA_NAME_WEIGHT = 0.4
SCHEMA_PROPERTY_WEIGHT = 0.6

SIGNIFICANT_WORD_LENGTH = 4


def overlap_ratio(first: set[str], second: set[str]) -> float:
    """Shared items over the size of the larger set; 0.0 when either set is empty."""
    if not first or not second:
        return 0.0
    return len(first & second) / max(len(first), len(second))


def endpoint_similarity(first: ApiEndpoint, second: ApiEndpoint) -> float:
    """
    Score two endpoints in [0, 1].

    0.3 for an identical method, 0.4 times the path word overlap and 0.3
    times the summary plus description word overlap.
    """
    score = METHOD_WEIGHT if first.method == second.method else 0.0
    score += PATH_WEIGHT * overlap_ratio(identifier_words(first.path), identifier_words(second.path))
    score += TEXT_WEIGHT * overlap_ratio(
        set(tokenize(_endpoint_text(first))), set(tokenize(_endpoint_text(second)))
    )
    return round(score, 6)


def schema_similarity(first: Schema, second: Schema) -> float:
    """Score two schemas: 0.4 name word overlap plus 0.6 shared property ratio."""
    score = SCHEMA_NAME_WEIGHT * overlap_ratio(
        identifier_words(first.name), identifier_words(second.name)
    )
    score += SCHEMA_PROPERTY_WEIGHT * overlap_ratio(
        {name.lower() for name in first.properties}, {name.lower() for name in second.properties}
    )
    return round(score, 6)


def code_similarity(first: CodeExample, second: CodeExample) -> float:
    """Significant word overlap between two examples; 0.0 across languages."""
    if first.language.lower() != second.language.lower():
        return 0.0
    return round(
        overlap_ratio(
            set(tokenize(first.code, SIGNIFICANT_WORD_LENGTH)),
            set(tokenize(second.code, SIGNIFICANT_WORD_LENGTH)),
        ),
        6,
    )


def _endpoint_text(endpoint: ApiEndpoint) -> str:
    return f"{endpoint.summary or ''} {endpoint.description or ''}"
