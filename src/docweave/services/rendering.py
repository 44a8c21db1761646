"""
Rendering sessions for documentation pages.

Static formats are fetched with a plain HTTP GET. Script-rendered formats go
through a shared headless Chrome driver, one browser tab per fetch; the tab is
closed whether or not extraction succeeds.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

import httpx
from bs4 import BeautifulSoup
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from docweave.exceptions import FetchError
from docweave.extractors import RenderedPage

from .http_client import HTTPClient

logger = logging.getLogger(__name__)

# Reads the first <video> element's properties from the live DOM
_MEDIA_SCRIPT = """
const video = document.querySelector('video');
if (!video) { return {}; }
return {
    duration: isFinite(video.duration) ? video.duration : null,
    poster: video.poster || null,
    src: video.currentSrc || null
};
"""


class Renderer(Protocol):
    """A source of rendered page markup"""

    async def render(self, url: str, wait_selector: str | None, timeout: float) -> RenderedPage: ...

    async def close(self) -> None: ...


class HttpRenderer:
    """Renderer for statically served pages"""

    def __init__(self, client: HTTPClient | None = None) -> None:
        # One attempt per render; retries belong to the fetcher so every
        # attempt passes through the rate limiter
        self.client = client or HTTPClient(max_retries=1)

    async def render(self, url: str, wait_selector: str | None = None, timeout: float = 30.0) -> RenderedPage:
        try:
            response = await self.client.get(url)
        except httpx.HTTPStatusError as e:
            raise FetchError(f"HTTP {e.response.status_code} fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}", url=url) from e

        html = response.text
        selector_found = True
        if wait_selector:
            selector_found = BeautifulSoup(html, "lxml").select_one(wait_selector) is not None
        return RenderedPage(url=url, html=html, selector_found=selector_found)

    async def close(self) -> None:
        """Nothing to release: every request opens its own client."""


class BrowserRenderer:
    """
    Renderer backed by a single Selenium Chrome driver.

    The driver is created lazily and reused; each render opens a new tab and
    closes it afterwards. Selenium calls are blocking, so they run in a worker
    thread and renders are serialized.
    """

    def __init__(
        self,
        headless: bool = True,
        selector_timeout: float = 10.0,
        driver_factory: Callable[[], Any] | None = None,
    ) -> None:
        """
        Args:
            headless: Run Chrome without a visible window
            selector_timeout: Max seconds to wait for a format's wait selector
            driver_factory: Builds a WebDriver (defaults to a configured Chrome driver)
        """
        self.headless = headless
        self.selector_timeout = selector_timeout
        self._driver_factory = driver_factory or self._create_webdriver
        self._driver = None
        self._lock = asyncio.Lock()

    async def render(self, url: str, wait_selector: str | None = None, timeout: float = 30.0) -> RenderedPage:
        async with self._lock:
            task = asyncio.ensure_future(asyncio.to_thread(self._render_sync, url, wait_selector, timeout))
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                # A worker thread cannot be interrupted; keep the driver locked until it returns
                await asyncio.wait({task})
                if not task.cancelled():
                    task.exception()
                raise

    async def close(self) -> None:
        async with self._lock:
            await asyncio.to_thread(self._safe_quit_driver)

    def _render_sync(self, url: str, wait_selector: str | None, timeout: float) -> RenderedPage:
        driver = self._ensure_driver()
        try:
            driver.switch_to.new_window("tab")
        except WebDriverException as e:
            raise FetchError(f"Could not open browser tab for {url}: {e}", url=url) from e

        try:
            driver.set_page_load_timeout(timeout)
            driver.get(url)

            selector_found = True
            if wait_selector:
                try:
                    WebDriverWait(driver, min(timeout, self.selector_timeout)).until(
                        EC.presence_of_element_located((By.CSS_SELECTOR, wait_selector))
                    )
                except TimeoutException:
                    logger.warning(
                        f"Selector {wait_selector!r} not found on {url}, proceeding with generic extraction"
                    )
                    selector_found = False

            media = driver.execute_script(_MEDIA_SCRIPT) or {}
            return RenderedPage(
                url=url, html=driver.page_source, media=media, selector_found=selector_found
            )
        except TimeoutException as e:
            raise FetchError(f"Timed out loading {url}", url=url) from e
        except WebDriverException as e:
            raise FetchError(f"Browser failed loading {url}: {e.msg or e}", url=url) from e
        finally:
            self._close_tab(driver)

    def _ensure_driver(self):
        if not self._is_webdriver_alive(self._driver):
            self._safe_quit_driver()
            try:
                self._driver = self._driver_factory()
            except WebDriverException as e:
                raise FetchError(f"Could not start browser: {e}") from e
        return self._driver

    def _close_tab(self, driver) -> None:
        try:
            driver.close()
            handles = driver.window_handles
            if handles:
                driver.switch_to.window(handles[0])
        except WebDriverException as e:
            logger.debug(f"Error closing browser tab: {e}")

    def _create_webdriver(self):
        """
        Create a Chrome WebDriver configured for documentation rendering.

        Returns:
            WebDriver: Configured Chrome WebDriver instance
        """
        import chromedriver_autoinstaller
        from selenium import webdriver
        from selenium.webdriver.chrome.service import Service

        try:
            chromedriver_path = chromedriver_autoinstaller.install()
        except PermissionError:
            logger.warning("Permission denied for default ChromeDriver location, using working directory")
            chromedriver_path = chromedriver_autoinstaller.install(cwd=True)

        options = webdriver.ChromeOptions()
        if self.headless:
            options.add_argument("--headless=new")
            options.add_argument("--disable-gpu")
            options.add_argument("--no-sandbox")
            options.add_argument("--disable-dev-shm-usage")
        else:
            options.add_argument("--start-maximized")

        options.add_argument("--disable-blink-features=AutomationControlled")
        options.add_argument("--disable-extensions")
        options.add_argument("--blink-settings=imagesEnabled=false")
        options.add_argument("--disk-cache-size=0")
        options.add_experimental_option("excludeSwitches", ["enable-logging"])
        options.add_argument("--log-level=3")  # Only show fatal errors
        options.page_load_strategy = "normal"

        driver = webdriver.Chrome(service=Service(executable_path=chromedriver_path), options=options)
        driver.set_script_timeout(30)

        logger.info(f"Created {'headless' if self.headless else 'visible'} Chrome WebDriver")
        return driver

    def _is_webdriver_alive(self, driver) -> bool:
        if driver is None:
            return False
        try:
            _ = driver.current_url
            return True
        except WebDriverException:
            return False

    def _safe_quit_driver(self) -> None:
        driver, self._driver = self._driver, None
        if driver is None:
            return
        try:
            driver.quit()
            logger.info("WebDriver closed")
        except WebDriverException as e:
            error_msg = str(e).lower()
            if "connection refused" not in error_msg and "connection reset" not in error_msg:
                logger.warning(f"Error closing WebDriver: {e}")
