"""Text normalization helpers shared by the store and the indexer"""

import hashlib
import re

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

MIN_TOKEN_LENGTH = 3


def tokenize(text: str, min_length: int = MIN_TOKEN_LENGTH) -> list[str]:
    """
    Split text into lowercase alphanumeric tokens.

    Args:
        text: Text to tokenize
        min_length: Shortest token to keep

    Returns:
        Tokens in order of appearance (duplicates kept)

    Examples:
        >>> tokenize("GET /api/v1/Students?id=1")
        ['get', 'api', 'students']
    """
    return [token for token in _TOKEN_RE.findall(text.lower()) if len(token) >= min_length]


def identifier_words(text: str, min_length: int = MIN_TOKEN_LENGTH) -> set[str]:
    """
    Tokenize text after splitting camelCase identifiers, as a set.

    ``assessmentTests`` yields ``{"assessment", "tests"}`` so that paths and
    schema names compare on their words rather than as one opaque token.
    """
    return set(tokenize(_CAMEL_BOUNDARY_RE.sub(" ", text), min_length))


def content_hash(content: str) -> str:
    """SHA-256 hex digest of content, used for change detection."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def stable_id(*parts: str) -> str:
    """Deterministic short id derived from a natural key."""
    key = "|".join(parts)
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]


def make_snippet(text: str, term: str, radius: int = 50, max_length: int = 200) -> str:
    """
    Return a window of ``radius`` characters around the first occurrence of term.

    Ellipses mark truncation on either side. Falls back to the start of the
    text when the term does not occur.
    """
    position = text.lower().find(term.lower())
    if position == -1:
        snippet = text[: radius * 2]
        suffix = "..." if len(text) > len(snippet) else ""
        return (snippet + suffix)[:max_length]

    start = max(0, position - radius)
    end = min(len(text), position + len(term) + radius)
    snippet = text[start:end].strip()
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet[:max_length]
