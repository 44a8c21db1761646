"""
Format-aware documentation fetcher.

Selects one extractor per URL, renders the page with the lightest renderer
the format allows, and wraps each attempt in the global rate limiter and a
linear-backoff retry policy.
"""

import asyncio
import logging
from collections.abc import Iterable

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from docweave.config import CrawlerConfig, Settings, default_crawler_config, get_settings
from docweave.exceptions import DocweaveError, FetchError, ParseError
from docweave.extractors import EXTRACTORS, FormatExtractor, get_extractor
from docweave.models import ContentFormat, CrawledContent
from docweave.utils import detect_content_format, detect_source_from_url

from .rate_limiter import RateLimiter
from .rendering import BrowserRenderer, HttpRenderer, Renderer

logger = logging.getLogger(__name__)


class DocumentationFetcher:
    """
    Fetches documentation URLs and extracts structured content.

    Example:
        >>> async with DocumentationFetcher() as fetcher:
        ...     content = await fetcher.fetch("https://qti.alpha-1edtech.com/docs/")
        ...     print(len(content.endpoints))
    """

    def __init__(
        self,
        config: CrawlerConfig | None = None,
        settings: Settings | None = None,
        http_renderer: Renderer | None = None,
        browser_renderer: Renderer | None = None,
        rate_limiter: RateLimiter | None = None,
        browser_formats: Iterable[ContentFormat] | None = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            config: Crawler configuration (defaults to settings + built-in sources)
            settings: Settings instance (defaults to the cached settings)
            http_renderer: Renderer for static formats
            browser_renderer: Renderer for script-rendered formats (created lazily)
            rate_limiter: Shared limiter (defaults to the configured spacing)
            browser_formats: Formats that need browser rendering (defaults to
                ``settings.browser_formats``, else the extractors flagged
                ``requires_browser``)
        """
        self.settings = settings or get_settings()
        self.config = config or default_crawler_config(self.settings)
        self.rate_limiter = rate_limiter or RateLimiter(self.config.rate_limit.min_interval)
        self.http_renderer = http_renderer or HttpRenderer()
        self._browser_renderer = browser_renderer
        if browser_formats is None and self.settings.browser_formats is not None:
            browser_formats = [ContentFormat(name) for name in self.settings.browser_formats]
        if browser_formats is None:
            browser_formats = [fmt for fmt, extractor in EXTRACTORS.items() if extractor.requires_browser]
        self.browser_formats = set(browser_formats)

    async def __aenter__(self) -> "DocumentationFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def detect_format(self, url: str) -> ContentFormat:
        """Configured format for a URL, else the format detected from its shape."""
        return self.config.format_for_url(url) or detect_content_format(url)

    def resolve_source(self, url: str) -> str:
        """Configured source id for a URL, else one guessed from the URL."""
        return self.config.source_for_url(url) or detect_source_from_url(url)

    async def fetch(
        self,
        url: str,
        content_format: ContentFormat | None = None,
        source: str | None = None,
    ) -> CrawledContent:
        """
        Fetch one URL and extract its content.

        Up to ``retry.max_retries`` attempts are made, waiting
        ``retry_delay * attempt_number`` between attempts. Every attempt waits
        for the rate limiter first.

        Args:
            url: URL to fetch
            content_format: Format override (detected when omitted)
            source: Logical source id override (resolved when omitted)

        Returns:
            Extracted CrawledContent

        Raises:
            FetchError: If every attempt failed (the last error is raised)
            ParseError: If the page was fetched but could not be extracted
        """
        content_format = content_format or self.detect_format(url)
        source = source or self.resolve_source(url)
        extractor = get_extractor(content_format)
        retry_delay = self.config.retry.retry_delay / 1000

        logger.info(f"Fetching {url} as {content_format.value} ({source})")

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.retry.max_retries),
            wait=wait_incrementing(start=retry_delay, increment=retry_delay),
            retry=retry_if_exception_type(FetchError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                content = await self._fetch_once(url, extractor)

        logger.info(
            f"Fetched {url}: {len(content.endpoints)} endpoints, {len(content.schemas)} schemas, "
            f"{len(content.code_examples)} code examples"
        )
        return content.model_copy(update={"source": source})

    async def fetch_many(self, urls: Iterable[str]) -> list[CrawledContent]:
        """
        Fetch URLs sequentially, skipping the ones that fail.

        Args:
            urls: URLs to fetch

        Returns:
            Content for every URL that succeeded, in input order
        """
        results: list[CrawledContent] = []
        for url in urls:
            try:
                results.append(await self.fetch(url))
            except DocweaveError as e:
                logger.error(f"Failed to fetch {url}: {e}")
        return results

    async def close(self) -> None:
        """Release rendering sessions."""
        if self._browser_renderer is not None:
            await self._browser_renderer.close()
        await self.http_renderer.close()

    @property
    def browser_renderer(self) -> Renderer:
        if self._browser_renderer is None:
            self._browser_renderer = BrowserRenderer(headless=self.settings.headless)
        return self._browser_renderer

    def _renderer_for(self, extractor: FormatExtractor) -> Renderer:
        if extractor.format in self.browser_formats:
            return self.browser_renderer
        return self.http_renderer

    async def _fetch_once(self, url: str, extractor: FormatExtractor) -> CrawledContent:
        await self.rate_limiter.acquire()

        timeout = self.config.timeout / 1000
        renderer = self._renderer_for(extractor)
        try:
            page = await asyncio.wait_for(
                renderer.render(url, extractor.wait_selector, timeout), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            raise FetchError(f"Timed out after {timeout:.0f}s fetching {url}", url=url) from e

        if not page.html or not page.html.strip():
            raise FetchError(f"Empty response from {url}", url=url)

        try:
            return extractor.extract(page)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise ParseError(f"Could not extract {extractor.format.value} content from {url}: {e}") from e
