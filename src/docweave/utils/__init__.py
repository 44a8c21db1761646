"""Utility functions for docweave"""

from .url_helpers import (
    detect_content_format,
    detect_source_from_url,
    is_valid_url,
    normalize_url,
)

__all__ = [
    "detect_content_format",
    "detect_source_from_url",
    "is_valid_url",
    "normalize_url",
]
