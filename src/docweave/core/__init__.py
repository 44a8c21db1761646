"""Pure domain logic: tokenization, hashing, similarity and cadence"""

from .cadence import ScheduleInterval, compute_next_run, parse_time_of_day
from .similarity import code_similarity, endpoint_similarity, overlap_ratio, schema_similarity
from .text import content_hash, identifier_words, make_snippet, stable_id, tokenize

__all__ = [
    "ScheduleInterval",
    "compute_next_run",
    "parse_time_of_day",
    "code_similarity",
    "endpoint_similarity",
    "overlap_ratio",
    "schema_similarity",
    "content_hash",
    "identifier_words",
    "make_snippet",
    "stable_id",
    "tokenize",
]
