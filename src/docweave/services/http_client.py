"""HTTP client for statically served documentation pages"""

import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from docweave.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Upstream statuses worth another attempt
TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_transient_error(error: BaseException) -> bool:
    """True for timeouts, connection failures and transient upstream statuses."""
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in TRANSIENT_STATUS_CODES
    return False


class HTTPClient:
    """
    Async GET client for documentation pages.

    Timeouts, network errors and transient 5xx/429 responses are retried
    with exponential backoff; any other HTTP error status is raised at once.
    """

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int = 3,
        headers: dict[str, str] | None = None,
        backoff: float = 1.0,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds (default from ``crawler_timeout``)
            max_retries: Maximum number of attempts per request
            headers: Default headers to include in all requests
            backoff: Exponential backoff multiplier in seconds (0 disables waiting)
            settings: Settings instance (defaults to the cached settings)
        """
        self.settings = settings or get_settings()
        self.timeout = timeout or (self.settings.crawler_timeout / 1000)
        self.max_retries = max_retries
        self.backoff = backoff
        self.default_headers = headers or {
            "User-Agent": self.settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,*/*",
        }

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        follow_redirects: bool = True,
    ) -> httpx.Response:
        """
        Make a GET request.

        Args:
            url: URL to request
            headers: Additional headers, merged over the defaults
            params: Query parameters
            follow_redirects: Whether to follow redirects

        Returns:
            Successful httpx.Response

        Raises:
            httpx.HTTPError: The last error once attempts are exhausted, or a
                non-transient status immediately
        """
        merged_headers = {**self.default_headers, **(headers or {})}

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff, max=10),
            retry=retry_if_exception(is_transient_error),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    follow_redirects=follow_redirects,
                ) as client:
                    response = await client.get(url, headers=merged_headers, params=params)
                    response.raise_for_status()
        return response
