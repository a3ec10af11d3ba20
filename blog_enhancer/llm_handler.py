import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

import litellm

from config import Config
from blog_enhancer.errors import ConfigurationError, RateLimitExhaustedError, RewriteError
from blog_enhancer.models import ExtractedContent, RewriteResult

logger = logging.getLogger(__name__)

REFERENCE_EXCERPT_LENGTH = 2000

SYSTEM_PROMPT = (
    "You are an expert content writer who specializes in rewriting and improving articles "
    "to match the style and quality of top-ranking content."
)

REWRITE_PROMPT = """You are an expert content writer and editor. Your task is to rewrite and improve the following article based on the style, formatting, and content approach of the reference articles provided.

ORIGINAL ARTICLE:
Title: {title}
Content:
{content}

---

REFERENCE ARTICLES (Top-ranking articles on Google for this topic):
{references}

---

INSTRUCTIONS:
1. Analyze the formatting, structure, and writing style of the reference articles
2. Rewrite the original article to match the quality and style of the reference articles
3. Improve the content while maintaining the core message and facts
4. Do NOT invent facts, statistics or quotes that are not supported by the original or the references
5. Use similar heading structures, paragraph lengths, and formatting patterns
6. Make the content more engaging and SEO-friendly
7. Keep the rewritten content comprehensive and well-structured
8. Do NOT include any meta-commentary or explanations - only output the rewritten article
9. Do NOT add a "References" section at the end. The references will be displayed separately by the system.
10. Ensure the content flows naturally and is not just a list of summaries.

OUTPUT FORMAT:
Return ONLY the rewritten article content in markdown format. DO NOT include a "References" section."""

NO_REFERENCES_TEXT = "(No reference articles were found. Improve the article using its own content only.)"


def build_rewrite_prompt(title: str, content: str, reference_docs: List[ExtractedContent]) -> str:
    """Builds the single prompt sent to the backend, with reference excerpts bounded in size."""
    references_text = "\n---\n\n".join(
        f"Reference Article {index}: {ref.title}\nURL: {ref.url}\n\n"
        f"Content:\n{ref.content[:REFERENCE_EXCERPT_LENGTH]}...\n"
        for index, ref in enumerate(reference_docs, start=1)
    )
    return REWRITE_PROMPT.format(
        title=title,
        content=content,
        references=references_text or NO_REFERENCES_TEXT,
    )


def is_rate_limit_error(error: Exception) -> bool:
    if isinstance(error, litellm.RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    return "429" in str(error)


def _message_content(response) -> str:
    if response.choices and response.choices[0].message:
        return response.choices[0].message.content or ""
    return ""


class LlmBackend:
    """A chat-completion model reachable through litellm."""
    name = "llm"

    def __init__(self, api_key: str, model: str):
        if not api_key:
            raise ValueError(f"An API key is required for the {self.name} backend.")
        self.api_key = api_key
        self.model = model

    async def _complete(self, messages: list, **kwargs) -> str:
        response = await litellm.acompletion(
            model=self.model,
            messages=messages,
            api_key=self.api_key,
            **kwargs,
        )
        return _message_content(response)

    async def generate(self, prompt: str) -> str:
        raise NotImplementedError


class OpenAIBackend(LlmBackend):
    """Primary backend. Used exclusively whenever it is configured."""
    name = "openai"

    async def generate(self, prompt: str) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        return await self._complete(messages, temperature=0.7, max_tokens=4000)


class GeminiBackend(LlmBackend):
    """
    Secondary backend with a per-minute quota.

    A rate-limited call is retried after a fixed cooldown, up to max_attempts
    calls in total. Any other error is raised immediately.
    """
    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        cooldown_seconds: float = 65,
        max_attempts: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        super().__init__(api_key, model)
        self.cooldown_seconds = cooldown_seconds
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def generate(self, prompt: str) -> str:
        messages = [{"role": "user", "content": prompt}]
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._complete(messages)
            except Exception as e:
                if not is_rate_limit_error(e):
                    raise
                logger.warning(f"Rate limit hit (Attempt {attempt}/{self.max_attempts}).")
                if attempt < self.max_attempts:
                    logger.warning(f"Waiting {self.cooldown_seconds:g}s to reset minute quota...")
                    await self._sleep(self.cooldown_seconds)
        raise RateLimitExhaustedError(self.max_attempts)


def resolve_backend(config: Config) -> Optional[LlmBackend]:
    """Picks the backend to use for this process: OpenAI if configured, else Gemini, else None."""
    if config.openai_api_key:
        return OpenAIBackend(config.openai_api_key, config.openai_model)
    if config.gemini_api_key:
        return GeminiBackend(
            config.gemini_api_key,
            config.gemini_model,
            cooldown_seconds=config.rate_limit_cooldown,
            max_attempts=config.rate_limit_max_attempts,
        )
    return None


class ArticleRewriter:
    """
    Rewrites articles with an LLM, using reference articles as a style guide.
    """
    def __init__(self, config: Config, backend: Optional[LlmBackend] = None):
        self.config = config
        self.backend = backend or resolve_backend(config)
        if self.backend:
            logger.info(f"ArticleRewriter initialized to use {self.backend.model} via litellm.")
        else:
            logger.warning("ArticleRewriter has no LLM backend configured.")

    def _require_backend(self) -> LlmBackend:
        if self.backend is None:
            raise ConfigurationError("Neither OPENAI_API_KEY nor GEMINI_API_KEY is set in environment variables")
        return self.backend

    async def rewrite(self, title: str, original_content: str, reference_docs: List[ExtractedContent]) -> RewriteResult:
        """
        Produces an enhanced markdown version of an article.

        Args:
            title (str): Title of the original article.
            original_content (str): Body of the original article.
            reference_docs (List[ExtractedContent]): Reference articles, possibly empty.

        Returns:
            RewriteResult: The new content and the reference URLs in input order.

        Raises:
            ConfigurationError: No backend is configured.
            RateLimitExhaustedError: The Gemini backend stayed rate limited.
            RewriteError: The backend returned no content.
        """
        backend = self._require_backend()
        logger.info(f"Rewriting article: \"{title}\" with {backend.name} ({len(reference_docs)} references)")

        prompt = build_rewrite_prompt(title, original_content, reference_docs)
        updated_content = (await backend.generate(prompt)).strip()
        if not updated_content:
            raise RewriteError("LLM returned empty content")

        logger.info(f"Article rewritten successfully ({len(updated_content)} characters)")
        return RewriteResult(
            updated_content=updated_content,
            references=[ref.url for ref in reference_docs],
        )

    async def summarize(self, content: str, max_length: int = 200) -> str:
        """
        Summarizes content in at most max_length characters.

        Returns:
            str: The summary, or an empty string if no backend is configured or an error occurs.
        """
        if self.backend is None:
            return ""
        prompt = f"Summarize the following article in {max_length} characters or less:\n\n{content}"
        try:
            return (await self.backend.generate(prompt)).strip()
        except Exception as e:
            logger.error(f"Summary generation failed: {e}", exc_info=True)
            return ""
