import asyncio
import logging
from typing import List, Optional

from config import Config
from blog_enhancer.article_fetcher import ArticleFetcher
from blog_enhancer.content_extractor import ContentExtractor
from blog_enhancer.database import Database
from blog_enhancer.errors import DuplicateArticleError, NotFoundError
from blog_enhancer.llm_handler import ArticleRewriter
from blog_enhancer.models import Article, BatchOutcome, ExtractedContent, ScrapeOutcome
from blog_enhancer.page_fetcher import PageFetcher
from blog_enhancer.search_provider import SearchProvider

logger = logging.getLogger(__name__)

class Orchestrator:
    """
    Runs the scrape and enhancement pipelines against the article store.
    """
    def __init__(
        self,
        config: Config,
        db: Database,
        search_provider: SearchProvider,
        content_extractor: ContentExtractor,
        rewriter: ArticleRewriter,
        article_fetcher: ArticleFetcher,
    ):
        self.config = config
        self.db = db
        self.search_provider = search_provider
        self.content_extractor = content_extractor
        self.rewriter = rewriter
        self.article_fetcher = article_fetcher

    @classmethod
    def from_config(cls, config: Config, db: Database) -> "Orchestrator":
        """Wires the default collaborators; they all share one PageFetcher."""
        fetcher = PageFetcher(config)
        return cls(
            config=config,
            db=db,
            search_provider=SearchProvider(fetcher),
            content_extractor=ContentExtractor(fetcher),
            rewriter=ArticleRewriter(config),
            article_fetcher=ArticleFetcher(config, fetcher),
        )

    async def scrape_and_store(self) -> ScrapeOutcome:
        """
        Scrapes the blog and stores articles whose URL is not known yet.
        """
        articles = await self.article_fetcher.fetch_all_articles()
        outcome = ScrapeOutcome(scraped_count=len(articles))

        for article in articles:
            if self.db.get_article_by_url(article.original_url):
                logger.info(f"Article already exists: {article.title}")
                outcome.skipped.append(article.original_url)
                continue
            try:
                saved = self.db.create_article(
                    title=article.title,
                    content=article.content,
                    original_url=article.original_url,
                    author=article.author,
                    published_date=article.published_date,
                )
            except DuplicateArticleError:
                outcome.skipped.append(article.original_url)
                continue
            logger.info(f"Saved: {article.title}")
            outcome.saved.append(saved)

        logger.info(
            f"Scrape summary: scraped={outcome.scraped_count} saved={len(outcome.saved)} "
            f"skipped={len(outcome.skipped)}"
        )
        return outcome

    async def _gather_references(self, title: str) -> List[ExtractedContent]:
        search_results = await self.search_provider.search(title, self.config.search_result_count)
        if not search_results:
            logger.warning(f"No search results for \"{title}\", proceeding with enhancement using internal LLM knowledge only.")
            return []

        reference_urls = [result.url for result in search_results]
        logger.info(f"Extracting content from {len(reference_urls)} reference articles...")
        references = await self.content_extractor.extract_multiple(reference_urls)
        if not references:
            logger.warning(f"Failed to extract content from reference articles for \"{title}\", proceeding without references.")
        else:
            logger.info(f"Successfully extracted {len(references)} reference articles")
        return references

    async def enhance_article(self, article: Article) -> Article:
        """
        Search -> extract -> rewrite -> persist for one article. Errors propagate.
        """
        logger.info(f"Processing: {article.title} ({article.id})")
        references = await self._gather_references(article.title)
        result = await self.rewriter.rewrite(article.title, article.content, references)
        updated = self.db.mark_enhanced(article.id, result.updated_content, result.references)
        logger.info(f"Successfully updated article: {article.title}")
        return updated

    async def enhance_by_id(self, article_id: str) -> Article:
        article = self.db.get_article(article_id)
        if article is None:
            raise NotFoundError(article_id)
        return await self.enhance_article(article)

    async def enhance_pending(self, limit: Optional[int] = 5, delay_seconds: float = 0) -> BatchOutcome:
        """
        Enhances up to `limit` articles that are not updated yet, one at a time.

        A failing article is logged and recorded in the outcome; the rest of
        the batch still runs.

        Args:
            limit (int): Maximum number of articles to process, None for all of them.
            delay_seconds (float): Pause between two articles, to go easy on upstream rate limits.
        """
        articles = self.db.list_articles(is_updated=False, limit=limit, oldest_first=True)
        outcome = BatchOutcome()
        if not articles:
            logger.info("No articles need enhancement.")
            return outcome

        logger.info(f"Found {len(articles)} articles to enhance.")
        for index, article in enumerate(articles):
            if index and delay_seconds:
                await asyncio.sleep(delay_seconds)
            try:
                outcome.succeeded.append(await self.enhance_article(article))
            except Exception as e:
                logger.error(f"Failed to enhance article: {article.title} ({article.id}): {e}", exc_info=True)
                outcome.failed.append((article.id, article.title, str(e)))

        logger.info(
            f"Enhancement summary: total={len(articles)} updated={outcome.success_count} "
            f"failed={outcome.failure_count}"
        )
        return outcome
