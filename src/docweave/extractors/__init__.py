"""
Per-format content extractors.

Each ContentFormat has exactly one FormatExtractor, selected once per fetch.
"""

from docweave.models import ContentFormat

from .api_reference import extract_interactive_reference, extract_structured_reference, infer_language
from .base import FormatExtractor, RenderedPage
from .documents import extract_rich_text, extract_video

EXTRACTORS: dict[ContentFormat, FormatExtractor] = {
    ContentFormat.STRUCTURED_API_REFERENCE: FormatExtractor(
        format=ContentFormat.STRUCTURED_API_REFERENCE,
        extract=extract_structured_reference,
        wait_selector=".swagger-ui",
        requires_browser=True,
    ),
    ContentFormat.INTERACTIVE_REFERENCE: FormatExtractor(
        format=ContentFormat.INTERACTIVE_REFERENCE,
        extract=extract_interactive_reference,
        wait_selector='[data-testid*="operation"]',
        requires_browser=True,
    ),
    ContentFormat.RICH_TEXT_DOCUMENT: FormatExtractor(
        format=ContentFormat.RICH_TEXT_DOCUMENT,
        extract=extract_rich_text,
        wait_selector=None,
        requires_browser=False,
    ),
    ContentFormat.VIDEO_WALKTHROUGH: FormatExtractor(
        format=ContentFormat.VIDEO_WALKTHROUGH,
        extract=extract_video,
        wait_selector="video",
        requires_browser=True,
    ),
}


def get_extractor(content_format: ContentFormat) -> FormatExtractor:
    """Extractor registered for a format"""
    return EXTRACTORS[content_format]


__all__ = [
    "EXTRACTORS",
    "FormatExtractor",
    "RenderedPage",
    "get_extractor",
    "extract_structured_reference",
    "extract_interactive_reference",
    "extract_rich_text",
    "extract_video",
    "infer_language",
]
