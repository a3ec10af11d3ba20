import logging
from typing import Optional

from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

from config import Config
from blog_enhancer.errors import NavigationError

logger = logging.getLogger(__name__)

class PageFetcher:
    """
    Loads fully rendered HTML through a headless browser.

    Every call to fetch() launches its own browser and closes it before
    returning, whether the navigation succeeded or not. Sessions are never
    shared between calls.
    """
    def __init__(self, config: Config):
        self.config = config

    def _browser_config(self) -> BrowserConfig:
        return BrowserConfig(
            headless=True,
            verbose=False,
            user_agent=self.config.user_agent,
            extra_args=["--no-sandbox", "--disable-setuid-sandbox"],
        )

    async def fetch(
        self,
        url: str,
        wait_for: Optional[str] = None,
        wait_until: str = "networkidle",
        timeout_ms: int = 30000,
        wait_timeout_ms: int = 10000,
    ) -> str:
        """
        Navigates to url and returns the rendered document.

        Args:
            url (str): The page to load.
            wait_for (str): Optional CSS selector group that must appear before the page is read.
            wait_until (str): Navigation lifecycle event to wait for ("networkidle", "domcontentloaded", ...).
            timeout_ms (int): Navigation timeout.
            wait_timeout_ms (int): How long to wait for `wait_for`.

        Returns:
            str: The rendered HTML.

        Raises:
            NavigationError: On timeout, network failure or an empty document.
        """
        run_config = CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            wait_until=wait_until,
            page_timeout=timeout_ms,
            wait_for=f"css:{wait_for}" if wait_for else None,
            wait_for_timeout=wait_timeout_ms if wait_for else None,
            verbose=False,
        )

        logger.debug(f"Opening browser session for {url}")
        try:
            async with AsyncWebCrawler(config=self._browser_config()) as crawler:
                result = await crawler.arun(url=url, config=run_config)
        except Exception as e:
            raise NavigationError(url, str(e)) from e

        if not result or not result.success:
            reason = getattr(result, "error_message", None) or "crawl was not successful"
            raise NavigationError(url, reason)
        if not result.html:
            raise NavigationError(url, "empty document")

        logger.debug(f"Fetched {len(result.html)} bytes of HTML from {url}")
        return result.html
