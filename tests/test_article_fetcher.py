"""Tests for blog_enhancer.article_fetcher."""

from datetime import datetime

import pytest

from blog_enhancer.article_fetcher import (
    ArticleFetcher,
    discover_links,
    parse_article,
    parse_date,
    select_links,
)
from blog_enhancer.errors import NavigationError

BLOG_URL = "https://blog.example.com/blogs/"

INDEX_PAGE = """
<html><body>
  <article class="post"><a href="/blogs/newest-post/">Newest</a></article>
  <article class="post"><a href="/blogs/middle-post/#comments">Middle</a></article>
  <article class="post"><a href="https://blog.example.com/blogs/middle-post/">Middle again</a></article>
  <article class="post"><a href="#top">Top</a><a href="mailto:hi@example.com">Mail</a></article>
  <article class="post"><a href="/blogs/oldest-post/">Oldest</a></article>
</body></html>
"""

BODY = "".join(f"<p>Sentence number {n} of the article body text.</p>" for n in range(10))


def _article_page(extra_head: str = "", extra_body: str = "", body: str = BODY) -> str:
    return f"""
    <html><head><title>Page title</title>{extra_head}</head><body>
      <article><h1>Chatbots in Support</h1>{extra_body}{body}</article>
    </body></html>
    """


class TestDiscoverLinks:
    def test_absolute_deduplicated_in_order(self) -> None:
        assert discover_links(INDEX_PAGE, BLOG_URL) == [
            "https://blog.example.com/blogs/newest-post/",
            "https://blog.example.com/blogs/middle-post/",
            "https://blog.example.com/blogs/oldest-post/",
        ]


class TestSelectLinks:
    LINKS = ["a", "b", "c", "d"]

    def test_oldest_takes_the_tail(self) -> None:
        assert select_links(self.LINKS, 2) == ["c", "d"]

    def test_newest_takes_the_head(self) -> None:
        assert select_links(self.LINKS, 2, order="newest") == ["a", "b"]

    def test_fewer_links_than_requested(self) -> None:
        assert select_links(self.LINKS, 10) == self.LINKS

    def test_zero(self) -> None:
        assert select_links(self.LINKS, 0) == []


class TestParseArticle:
    def test_fields(self) -> None:
        page = _article_page(
            extra_head='<meta name="author" content="Meta Author">',
            extra_body='<time datetime="2023-05-01T09:30:00Z">May 1</time>',
        )
        article = parse_article(page, "https://blog.example.com/blogs/chatbots/")

        assert article.title == "Chatbots in Support"
        assert article.author == "Meta Author"
        assert article.published_date == datetime.fromisoformat("2023-05-01T09:30:00+00:00")
        assert article.original_url == "https://blog.example.com/blogs/chatbots/"
        assert "Sentence number 9" in article.content

    def test_author_link_wins_over_meta(self) -> None:
        page = _article_page(
            extra_head='<meta name="author" content="Meta Author">',
            extra_body='<span class="post-author"><a href="/u/jane">Jane Roe</a></span>',
        )
        assert parse_article(page, "https://x.example.com").author == "Jane Roe"

    def test_unparseable_date_is_dropped(self) -> None:
        page = _article_page(extra_body='<span class="post-date">sometime last spring-ish?</span>')
        article = parse_article(page, "https://x.example.com")
        assert article is not None
        assert article.published_date is None

    def test_missing_metadata(self) -> None:
        article = parse_article(_article_page(), "https://x.example.com")
        assert article.author is None
        assert article.published_date is None

    def test_too_short_is_skipped(self) -> None:
        assert parse_article(_article_page(body="<p>Tiny.</p>"), "https://x.example.com") is None


def test_parse_date() -> None:
    assert parse_date("March 3, 2024") == datetime(2024, 3, 3)
    assert parse_date("soon") is None
    assert parse_date(None) is None


@pytest.mark.asyncio
class TestArticleFetcher:
    async def test_fetch_all_articles_survives_one_failure(self, config, make_fetcher) -> None:
        config.scrape_article_count = 2
        fetcher = make_fetcher({
            BLOG_URL: INDEX_PAGE,
            "https://blog.example.com/blogs/middle-post/": NavigationError(
                "https://blog.example.com/blogs/middle-post/", "Timeout 30000ms exceeded"
            ),
            "https://blog.example.com/blogs/oldest-post/": _article_page(),
        })

        articles = await ArticleFetcher(config, fetcher).fetch_all_articles()

        assert [a.original_url for a in articles] == ["https://blog.example.com/blogs/oldest-post/"]
        assert [url for url, _ in fetcher.calls] == [
            BLOG_URL,
            "https://blog.example.com/blogs/middle-post/",
            "https://blog.example.com/blogs/oldest-post/",
        ]

    async def test_index_failure_propagates(self, config, make_fetcher) -> None:
        fetcher = make_fetcher({})
        with pytest.raises(NavigationError):
            await ArticleFetcher(config, fetcher).fetch_all_articles()

    async def test_newest_order(self, config, make_fetcher) -> None:
        config.scrape_article_count = 1
        config.scrape_order = "newest"
        fetcher = make_fetcher({
            BLOG_URL: INDEX_PAGE,
            "https://blog.example.com/blogs/newest-post/": _article_page(),
        })

        articles = await ArticleFetcher(config, fetcher).fetch_all_articles()

        assert [a.original_url for a in articles] == ["https://blog.example.com/blogs/newest-post/"]
        assert len(fetcher.calls) == 2
