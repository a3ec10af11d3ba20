import logging
from typing import List, Optional
from urllib.parse import parse_qs, urlencode, urlparse

from bs4 import BeautifulSoup

from blog_enhancer.errors import NavigationError
from blog_enhancer.models import SearchResult
from blog_enhancer.page_fetcher import PageFetcher

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.google.com/search"
RESULTS_READY_SELECTOR = "#search, #rso, .g"
RESULT_SELECTOR = "div.g, div[data-sokoban-container]"
SNIPPET_SELECTOR = "div[data-sncf], .VwiC3b, .s3v9rd"

# Results on these hosts are videos or social posts, not articles.
EXCLUDED_DOMAINS = ["youtube.com", "facebook.com", "twitter.com", "instagram.com", "linkedin.com/posts"]


def build_search_url(query: str) -> str:
    return f"{SEARCH_URL}?{urlencode({'q': query, 'gl': 'us', 'hl': 'en'})}"


def _unwrap_redirect(href: str) -> str:
    # Result links are sometimes served as /url?q=<target>&sa=...
    if href.startswith("/url?"):
        target = parse_qs(urlparse(href).query).get("q")
        if target:
            return target[0]
    return href


def is_excluded(url: str) -> bool:
    return any(domain in url for domain in EXCLUDED_DOMAINS)


def parse_search_results(html: str) -> List[SearchResult]:
    """
    Pulls organic results out of a rendered search page, in document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    results: List[SearchResult] = []
    seen_urls = set()

    for element in soup.select(RESULT_SELECTOR):
        link = element.select_one("a[href]")
        heading = element.select_one("h3")
        if not link or not heading:
            continue

        url = _unwrap_redirect(link["href"])
        if not url.startswith(("http://", "https://")) or is_excluded(url):
            continue
        if url in seen_urls:
            continue
        seen_urls.add(url)

        snippet: Optional[str] = None
        snippet_element = element.select_one(SNIPPET_SELECTOR)
        if snippet_element:
            snippet = snippet_element.get_text()
        results.append(SearchResult(title=heading.get_text(), url=url, snippet=snippet or ""))

    return results


class SearchProvider:
    """
    Finds reference articles for a topic by reading a web search results page.
    """
    def __init__(self, fetcher: PageFetcher):
        self.fetcher = fetcher

    async def search(self, query: str, max_results: int = 2) -> List[SearchResult]:
        """
        Searches for query and returns at most max_results results.

        An unreachable or unrendered results page yields an empty list; callers
        treat that as "no references", not as an error.
        """
        logger.info(f"Searching Google for: \"{query}\"")
        try:
            html = await self.fetcher.fetch(
                build_search_url(query),
                wait_for=RESULTS_READY_SELECTOR,
                wait_until="domcontentloaded",
                timeout_ms=15000,
                wait_timeout_ms=10000,
            )
        except NavigationError as e:
            logger.warning(f"Search results not available ({e.reason}), returning empty results to allow fallback.")
            return []

        results = parse_search_results(html)
        logger.info(f"Found {len(results)} search results")

        top_results = results[:max_results]
        for index, result in enumerate(top_results, start=1):
            logger.info(f"{index}. {result.title}")
            logger.info(f"   URL: {result.url}")
        return top_results
