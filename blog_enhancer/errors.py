class BlogEnhancerError(Exception):
    """Base class for all errors raised by the enhancement pipeline."""


class NavigationError(BlogEnhancerError):
    """A page could not be loaded (timeout, network failure or empty document)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class ConfigurationError(BlogEnhancerError):
    """Raised when no LLM backend is configured."""


class RewriteError(BlogEnhancerError):
    """The LLM backend did not produce usable content."""


class RateLimitExhaustedError(RewriteError):
    """The rate-limited backend kept refusing after every allowed attempt."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to generate content after {attempts} attempts due to rate limits.")


class DuplicateArticleError(BlogEnhancerError):
    """An article with the same original URL already exists."""

    def __init__(self, original_url: str):
        self.original_url = original_url
        super().__init__(f"Article with this URL already exists: {original_url}")


class NotFoundError(BlogEnhancerError):
    """No article exists for the given id."""

    def __init__(self, article_id: str):
        self.article_id = article_id
        super().__init__(f"Article not found: {article_id}")
