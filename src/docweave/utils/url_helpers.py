"""URL manipulation, validation and classification utilities"""

from urllib.parse import urlparse, urlunparse

from docweave.models import ContentFormat

# Checked in order, first match wins
_FORMAT_PATTERNS: list[tuple[ContentFormat, tuple[str, ...]]] = [
    (ContentFormat.RICH_TEXT_DOCUMENT, ("docs.google.com",)),
    (ContentFormat.VIDEO_WALKTHROUGH, ("loom.com", "youtube.com", "youtu.be", "vimeo.com")),
    (ContentFormat.INTERACTIVE_REFERENCE, ("/scalar",)),
    (ContentFormat.STRUCTURED_API_REFERENCE, ("swagger", "/openapi", "/api-docs", "/docs")),
]

# Keyword hints for logical source ids, checked in order
_SOURCE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("powerpath", ("powerpath",)),
    ("case", ("case-api", "/case")),
    ("caliper", ("caliper",)),
    ("qti", ("qti",)),
    ("oneroster", ("oneroster", "roster")),
]


def normalize_url(url: str) -> str:
    """
    Normalize a URL by standardizing format.

    - Ensures https:// scheme if no scheme provided
    - Removes trailing slashes
    - Removes fragment identifiers
    - Lowercases scheme and domain

    Args:
        url: URL to normalize

    Returns:
        Normalized URL string

    Examples:
        >>> normalize_url("example.com/docs/")
        "https://example.com/docs"
        >>> normalize_url("HTTP://EXAMPLE.COM/Docs#section")
        "http://example.com/Docs"
    """
    url = url.strip()

    if not url.lower().startswith(("http://", "https://")):
        url = f"https://{url}"

    parsed = urlparse(url)
    path = parsed.path.rstrip("/") if parsed.path != "/" else ""

    return urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), path, "", parsed.query, "")
    )


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: URL to validate

    Returns:
        True if URL has an http(s) scheme and a netloc
    """
    try:
        result = urlparse(url)
        return result.scheme in ("http", "https") and bool(result.netloc)
    except ValueError:
        return False


def detect_content_format(url: str) -> ContentFormat:
    """
    Detect the documentation format of a URL from its shape.

    Unknown URLs default to the structured API reference format.

    Examples:
        >>> detect_content_format("https://docs.google.com/document/d/abc")
        <ContentFormat.RICH_TEXT_DOCUMENT: 'rich_text_document'>
        >>> detect_content_format("https://api.example.com/scalar?api=case-api")
        <ContentFormat.INTERACTIVE_REFERENCE: 'interactive_reference'>
    """
    url_lower = url.lower()
    for content_format, patterns in _FORMAT_PATTERNS:
        if any(pattern in url_lower for pattern in patterns):
            return content_format
    return ContentFormat.STRUCTURED_API_REFERENCE


def detect_source_from_url(url: str) -> str:
    """
    Guess the logical source id of a URL that is not in the configuration.

    Falls back to the host name without a leading ``www.``.
    """
    url_lower = url.lower()
    for source, keywords in _SOURCE_KEYWORDS:
        if any(keyword in url_lower for keyword in keywords):
            return source

    netloc = urlparse(url_lower).netloc
    return netloc.removeprefix("www.") or "unknown"
