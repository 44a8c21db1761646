"""Extractors for rich-text documents and video walkthroughs"""

import logging
import re
from typing import Any

from docweave.models import ContentFormat, CrawledContent

from .base import (
    RenderedPage,
    body_text,
    find_endpoint_mentions,
    first_text,
    meta_content,
    page_title,
    parse_html,
    text_of,
)

logger = logging.getLogger(__name__)

_DOCUMENT_ROOTS = [".kix-document-content", ".doc-content", "#contents", "article", "main", "body"]
_TITLE_SUFFIX_RE = re.compile(r"\s+-\s+Google Docs$")


def extract_rich_text(page: RenderedPage) -> CrawledContent:
    """
    Extract body text, heading hierarchy, hyperlinks and tables from a document.

    Inline ``METHOD /path`` mentions are recorded in metadata rather than as
    endpoints, since prose rarely describes a full operation.
    """
    soup = parse_html(page.html)
    root = next((soup.select_one(s) for s in _DOCUMENT_ROOTS if soup.select_one(s)), soup)

    headings = [
        {"level": int(heading.name[1]), "text": text_of(heading)}
        for heading in root.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])
        if text_of(heading)
    ]
    links = [
        {"text": text_of(link), "href": link["href"]}
        for link in root.find_all("a", href=True)
        if not link["href"].startswith(("#", "javascript:"))
    ]
    tables = []
    for table in root.find_all("table"):
        rows = [
            [text_of(cell) for cell in row.find_all(["td", "th"])]
            for row in table.find_all("tr")
        ]
        rows = [row for row in rows if any(row)]
        if rows:
            tables.append(rows)

    content = body_text(root)
    title = _TITLE_SUFFIX_RE.sub("", page_title(soup, ""))
    if not title:
        title = headings[0]["text"] if headings else "Untitled Document"

    return CrawledContent(
        url=page.url,
        title=title,
        content=content,
        format=ContentFormat.RICH_TEXT_DOCUMENT,
        metadata={
            "headings": headings,
            "links": links,
            "tables": tables,
            "endpoint_mentions": find_endpoint_mentions(content),
            "word_count": len(content.split()),
        },
    )


def extract_video(page: RenderedPage) -> CrawledContent:
    """
    Extract title, description, transcript and duration from a video page.

    Duration and poster come from the live ``<video>`` element when the
    renderer captured them, else from page meta tags.
    """
    soup = parse_html(page.html)

    title = (
        first_text(soup, ["h1", ".video-title", '[data-testid="video-title"]'])
        or meta_content(soup, "og:title")
        or page_title(soup, "Untitled Video")
    )
    description = first_text(
        soup, ['[data-testid="video-description"]', ".description", ".video-description"]
    ) or meta_content(soup, "og:description", "description")
    transcript = first_text(soup, ['[data-testid="transcript"]', ".transcript"])

    video = soup.find("video")
    duration = page.media.get("duration") or meta_content(soup, "video:duration", "duration")
    poster = page.media.get("poster") or (video.get("poster") if video else None) or meta_content(
        soup, "og:image"
    )

    metadata: dict[str, Any] = {
        "description": description,
        "has_transcript": bool(transcript),
        "duration": duration or None,
        "poster": poster or None,
    }

    content = "\n\n".join(part for part in (title, description, transcript) if part)
    logger.debug(f"Video {page.url}: transcript={'yes' if transcript else 'no'}")

    return CrawledContent(
        url=page.url,
        title=title,
        content=content,
        format=ContentFormat.VIDEO_WALKTHROUGH,
        metadata=metadata,
    )
