import copy
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup

from blog_enhancer.models import ExtractedContent
from blog_enhancer.page_fetcher import PageFetcher

logger = logging.getLogger(__name__)

# Descendants removed from a content container before its text is collected.
NOISE_SELECTOR = (
    "script, style, nav, footer, aside, header, .comments, .related, .sidebar, "
    ".advertisement, .ads, iframe, button, form"
)
TEXT_BLOCK_SELECTOR = "p, h1, h2, h3, h4, h5, h6, li"

MIN_BLOCK_LENGTH = 20
MIN_CONTAINER_LENGTH = 200
MIN_FALLBACK_PARAGRAPH_LENGTH = 50
MIN_CONTENT_LENGTH = 100

_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_CONTROL_CHARS_RE = re.compile(r"[\u0000-\u001F\u007F-\u009F]")


@dataclass(frozen=True)
class ContainerStrategy:
    """Collects text blocks from every element matching `selector`."""
    selector: str

    def try_extract(self, soup: BeautifulSoup) -> Optional[str]:
        containers = soup.select(self.selector)
        if not containers:
            return None

        parts: List[str] = []
        for container in containers:
            clone = copy.copy(container)
            for noise in clone.select(NOISE_SELECTOR):
                noise.extract()
            for block in clone.select(TEXT_BLOCK_SELECTOR):
                text = block.get_text().strip()
                if len(text) > MIN_BLOCK_LENGTH:
                    parts.append(text)
        return "\n\n".join(parts)


@dataclass(frozen=True)
class ParagraphFallbackStrategy:
    """Every sufficiently long <p> in the document, wherever it sits."""
    min_length: int = MIN_FALLBACK_PARAGRAPH_LENGTH

    def try_extract(self, soup: BeautifulSoup) -> Optional[str]:
        paragraphs = [p.get_text().strip() for p in soup.find_all("p")]
        text = "\n\n".join(p for p in paragraphs if len(p) > self.min_length)
        return text or None


# Ordered by priority; the first container producing more than
# MIN_CONTAINER_LENGTH characters wins.
CONTAINER_STRATEGIES: Sequence[ContainerStrategy] = (
    ContainerStrategy("article"),
    ContainerStrategy("main article"),
    ContainerStrategy(".article-content"),
    ContainerStrategy(".post-content"),
    ContainerStrategy(".entry-content"),
    ContainerStrategy("main"),
    ContainerStrategy('[role="main"]'),
    ContainerStrategy(".content"),
    ContainerStrategy("#content"),
)
FALLBACK_STRATEGY = ParagraphFallbackStrategy()


def clean_content(text: str) -> str:
    """Normalizes whitespace and strips control characters."""
    text = _WHITESPACE_RE.sub(" ", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    text = _CONTROL_CHARS_RE.sub("", text)
    return text.strip()


def extract_title(soup: BeautifulSoup, default: str = "Untitled") -> str:
    h1 = soup.select_one("h1")
    if h1 and h1.get_text().strip():
        return h1.get_text().strip()

    article_h1 = soup.select_one("article h1")
    if article_h1 and article_h1.get_text().strip():
        return article_h1.get_text().strip()

    og_title = soup.select_one('meta[property="og:title"]')
    if og_title and og_title.get("content"):
        return og_title["content"]

    if soup.title and soup.title.get_text().strip():
        return soup.title.get_text().strip()

    return default


def extract_main_text(
    soup: BeautifulSoup,
    strategies: Sequence[ContainerStrategy] = CONTAINER_STRATEGIES,
    fallback: ParagraphFallbackStrategy = FALLBACK_STRATEGY,
) -> str:
    """
    Returns the cleaned text of the most plausible main-content region.

    Container strategies are tried in order. If none yields more than
    MIN_CONTAINER_LENGTH characters the whole-document paragraph fallback is
    used instead. The result may be empty.
    """
    for strategy in strategies:
        text = strategy.try_extract(soup)
        if text and len(text) > MIN_CONTAINER_LENGTH:
            logger.debug(f"Main content found with selector '{strategy.selector}'")
            return clean_content(text)

    return clean_content(fallback.try_extract(soup) or "")


def finalize_content(text: str, min_length: int = MIN_CONTENT_LENGTH) -> Optional[str]:
    """Returns text when it is long enough to be useful, otherwise None."""
    if not text or len(text) < min_length:
        return None
    return text


class ContentExtractor:
    """
    Extracts the title and main text of arbitrary web pages.
    """
    def __init__(self, fetcher: PageFetcher):
        self.fetcher = fetcher

    async def extract(self, url: str) -> Optional[ExtractedContent]:
        """
        Fetches url and extracts its main content.

        Returns:
            ExtractedContent or None if the page could not be loaded or holds
            too little text.
        """
        logger.info(f"Extracting content from: {url}")
        try:
            html = await self.fetcher.fetch(url, wait_for="body", wait_until="networkidle", timeout_ms=30000)
            soup = BeautifulSoup(html, "html.parser")
            title = extract_title(soup)
            content = finalize_content(extract_main_text(soup))
        except Exception as e:
            logger.error(f"Failed to extract content from {url}: {e}")
            return None

        if content is None:
            logger.warning(f"Insufficient content extracted from {url}")
            return None

        logger.info(f"Extracted {len(content)} characters from {url}")
        return ExtractedContent(title=title, content=content, url=url)

    async def extract_multiple(self, urls: List[str]) -> List[ExtractedContent]:
        """Extracts each URL in turn, leaving out the ones that fail."""
        results: List[ExtractedContent] = []
        for url in urls:
            try:
                extracted = await self.extract(url)
            except Exception as e:
                logger.error(f"Failed to extract {url}: {e}")
                continue
            if extracted:
                results.append(extracted)
        return results
