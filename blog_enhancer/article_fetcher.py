import logging
from datetime import datetime
from typing import List, Optional
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from config import Config
from blog_enhancer.content_extractor import extract_main_text, extract_title
from blog_enhancer.models import ScrapedArticle
from blog_enhancer.page_fetcher import PageFetcher

logger = logging.getLogger(__name__)

INDEX_READY_SELECTOR = 'article, .blog-post, .post, [class*="article"]'
ARTICLE_READY_SELECTOR = "article, .article-content, .post-content, main"
ARTICLE_LINK_SELECTOR = 'a[href*="/blog"], a[href*="/article"], article a, .blog-post a, .post a'

MIN_ARTICLE_LENGTH = 50


def discover_links(html: str, base_url: str) -> List[str]:
    """
    Returns absolute article URLs found on an index page, de-duplicated in discovery order.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    seen = set()
    for anchor in soup.select(ARTICLE_LINK_SELECTOR):
        href = (anchor.get("href") or "").strip()
        if not href or href.startswith(("#", "mailto:", "javascript:")):
            continue
        url, _fragment = urldefrag(urljoin(base_url, href))
        if url not in seen:
            seen.add(url)
            links.append(url)
    return links


def select_links(links: List[str], count: int, order: str = "oldest") -> List[str]:
    """
    Picks the articles to scrape.

    "oldest" takes the last `count` links, which relies on the index listing
    newest articles first; nothing checks the actual publication dates.
    """
    if count <= 0:
        return []
    if order == "newest":
        return links[:count]
    return links[-count:]


def extract_author(soup: BeautifulSoup) -> Optional[str]:
    for selector in ('[class*="author"] a', '[rel="author"]'):
        element = soup.select_one(selector)
        if element and element.get_text().strip():
            return element.get_text().strip()
    meta = soup.select_one('meta[name="author"]')
    if meta and meta.get("content"):
        return meta["content"].strip()
    return None


def parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        logger.debug(f"Discarding unparseable date: {value!r}")
        return None


def extract_published_date(soup: BeautifulSoup) -> Optional[datetime]:
    time_tag = soup.select_one("time[datetime]")
    date_element = soup.select_one('[class*="date"]')
    meta = soup.select_one('meta[property="article:published_time"]')

    # The first candidate that is present is the one used, like the title chain.
    for candidate in (
        time_tag.get("datetime") if time_tag else None,
        date_element.get_text().strip() if date_element else None,
        meta.get("content") if meta else None,
    ):
        if candidate:
            return parse_date(candidate)
    return None


def parse_article(html: str, url: str) -> Optional[ScrapedArticle]:
    """Builds a ScrapedArticle from a rendered article page, or None if it has too little text."""
    soup = BeautifulSoup(html, "html.parser")
    title = extract_title(soup, default="Untitled Article")
    author = extract_author(soup)
    published_date = extract_published_date(soup)
    content = extract_main_text(soup)

    if len(content) < MIN_ARTICLE_LENGTH:
        logger.warning(f"Insufficient content for {url}")
        return None

    return ScrapedArticle(
        title=title,
        content=content,
        original_url=url,
        author=author,
        published_date=published_date,
    )


class ArticleFetcher:
    """
    Scrapes original articles from the configured blog index.
    """
    def __init__(self, config: Config, fetcher: PageFetcher):
        self.config = config
        self.fetcher = fetcher

    async def discover_article_links(self) -> List[str]:
        """Loads the blog index. A NavigationError here is fatal for the run and propagates."""
        blog_url = self.config.blog_url
        logger.info(f"Navigating to {blog_url}")
        html = await self.fetcher.fetch(blog_url, wait_for=INDEX_READY_SELECTOR, wait_until="networkidle", timeout_ms=30000)
        links = discover_links(html, blog_url)
        logger.info(f"Found {len(links)} article links")
        return links

    async def scrape_article(self, url: str) -> Optional[ScrapedArticle]:
        logger.info(f"Scraping article: {url}")
        html = await self.fetcher.fetch(url, wait_for=ARTICLE_READY_SELECTOR, wait_until="networkidle", timeout_ms=30000)
        return parse_article(html, url)

    async def fetch_all_articles(self) -> List[ScrapedArticle]:
        """
        Discovers article links and scrapes the selected subset.

        Returns:
            List[ScrapedArticle]: Successfully scraped articles, in selection order.
        """
        logger.info("Starting blog scraper...")
        links = await self.discover_article_links()
        selected = select_links(links, self.config.scrape_article_count, self.config.scrape_order)
        logger.info(f"Scraping {len(selected)} {self.config.scrape_order} articles")

        articles: List[ScrapedArticle] = []
        for url in selected:
            try:
                article = await self.scrape_article(url)
            except Exception as e:
                logger.error(f"Failed to scrape article {url}: {e}")
                continue
            if article:
                articles.append(article)

        logger.info(f"Successfully scraped {len(articles)} articles")
        return articles
