"""Shared types and HTML helpers for per-format extractors"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, Tag

from docweave.models import ContentFormat, CrawledContent

# Matches inline mentions like "GET /api/users" or "POST /v1/customers"
ENDPOINT_MENTION_RE = re.compile(r"\b(GET|POST|PUT|PATCH|DELETE)\s+(/[a-zA-Z0-9/_\-{}:.]+)")


@dataclass
class RenderedPage:
    """Markup of one fetched page plus any values read from the live DOM"""

    url: str
    html: str
    media: dict[str, Any] = field(default_factory=dict)
    selector_found: bool = True


@dataclass(frozen=True)
class FormatExtractor:
    """
    Extraction capability for one content format.

    Attributes:
        format: Format handled
        extract: Turns a rendered page into CrawledContent
        wait_selector: CSS selector signalling a rendered page
        requires_browser: Whether the format is rendered client-side
    """

    format: ContentFormat
    extract: Callable[[RenderedPage], CrawledContent]
    wait_selector: str | None = None
    requires_browser: bool = False


def parse_html(html: str) -> BeautifulSoup:
    """Parse markup with lxml, dropping script and style elements."""
    soup = BeautifulSoup(html, "lxml")
    for element in soup(["script", "style", "noscript"]):
        element.decompose()
    return soup


def text_of(element: Tag | None) -> str:
    """Whitespace-collapsed text of an element, empty for None."""
    if element is None:
        return ""
    return " ".join(element.get_text(" ", strip=True).split())


def first_text(root: BeautifulSoup | Tag, selectors: list[str]) -> str:
    """Text of the first non-empty match among selectors, tried in order."""
    for selector in selectors:
        text = text_of(root.select_one(selector))
        if text:
            return text
    return ""


def meta_content(soup: BeautifulSoup, *names: str) -> str:
    """Content of the first ``<meta>`` tag whose name, property or itemprop matches."""
    for name in names:
        for attr in ("name", "property", "itemprop"):
            tag = soup.find("meta", attrs={attr: name})
            if tag and tag.get("content"):
                return tag["content"].strip()
    return ""


def page_title(soup: BeautifulSoup, fallback: str = "Untitled") -> str:
    """Title tag text, else first h1, else fallback."""
    title = text_of(soup.find("title")) or text_of(soup.find("h1"))
    return title or fallback


def body_text(root: BeautifulSoup | Tag) -> str:
    """Visible text of a subtree, one block per line."""
    lines = (line.strip() for line in root.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


def find_endpoint_mentions(text: str) -> list[str]:
    """Unique ``METHOD /path`` mentions in order of appearance."""
    mentions: list[str] = []
    for method, path in ENDPOINT_MENTION_RE.findall(text):
        mention = f"{method} {path.rstrip('.')}"
        if mention not in mentions:
            mentions.append(mention)
    return mentions
