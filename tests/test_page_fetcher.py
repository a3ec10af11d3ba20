"""Tests for blog_enhancer.page_fetcher. The crawl4ai crawler is mocked."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from blog_enhancer.errors import NavigationError
from blog_enhancer.page_fetcher import PageFetcher


def _mock_crawler_class(arun: AsyncMock) -> MagicMock:
    crawler = MagicMock()
    crawler.arun = arun
    crawler_class = MagicMock()
    instance = crawler_class.return_value
    instance.__aenter__ = AsyncMock(return_value=crawler)
    instance.__aexit__ = AsyncMock(return_value=False)
    return crawler_class


@pytest.mark.asyncio
class TestPageFetcher:
    async def test_returns_rendered_html(self, config) -> None:
        arun = AsyncMock(return_value=SimpleNamespace(success=True, html="<html>ok</html>", error_message=""))
        crawler_class = _mock_crawler_class(arun)

        with patch("blog_enhancer.page_fetcher.AsyncWebCrawler", crawler_class):
            html = await PageFetcher(config).fetch("https://example.com", wait_for="body")

        assert html == "<html>ok</html>"
        run_config = arun.call_args.kwargs["config"]
        assert run_config.wait_for == "css:body"
        assert run_config.page_timeout == 30000
        browser_config = crawler_class.call_args.kwargs["config"]
        assert browser_config.user_agent == config.user_agent
        crawler_class.return_value.__aexit__.assert_awaited_once()

    async def test_unsuccessful_crawl_raises(self, config) -> None:
        arun = AsyncMock(return_value=SimpleNamespace(success=False, html="", error_message="net::ERR_TIMED_OUT"))

        with patch("blog_enhancer.page_fetcher.AsyncWebCrawler", _mock_crawler_class(arun)):
            with pytest.raises(NavigationError, match="ERR_TIMED_OUT"):
                await PageFetcher(config).fetch("https://example.com")

    async def test_empty_document_raises(self, config) -> None:
        arun = AsyncMock(return_value=SimpleNamespace(success=True, html="", error_message=""))

        with patch("blog_enhancer.page_fetcher.AsyncWebCrawler", _mock_crawler_class(arun)):
            with pytest.raises(NavigationError, match="empty document"):
                await PageFetcher(config).fetch("https://example.com")

    async def test_session_released_when_crawl_raises(self, config) -> None:
        arun = AsyncMock(side_effect=RuntimeError("browser crashed"))
        crawler_class = _mock_crawler_class(arun)

        with patch("blog_enhancer.page_fetcher.AsyncWebCrawler", crawler_class):
            with pytest.raises(NavigationError, match="browser crashed") as exc_info:
                await PageFetcher(config).fetch("https://example.com")

        assert exc_info.value.url == "https://example.com"
        crawler_class.return_value.__aexit__.assert_awaited_once()

    async def test_each_fetch_uses_its_own_session(self, config) -> None:
        arun = AsyncMock(return_value=SimpleNamespace(success=True, html="<html></html>", error_message=""))
        crawler_class = _mock_crawler_class(arun)

        with patch("blog_enhancer.page_fetcher.AsyncWebCrawler", crawler_class):
            fetcher = PageFetcher(config)
            await fetcher.fetch("https://example.com/a")
            await fetcher.fetch("https://example.com/b")

        assert crawler_class.call_count == 2
        assert crawler_class.return_value.__aexit__.await_count == 2
