import os
from urllib.parse import urlparse
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

class Config:
    """
    Configuration class to hold all settings for the blog enhancer.
    Loads values from environment variables.
    """
    def __init__(self):
        load_dotenv()  # Load environment variables from .env file

        # Blog source
        self.blog_url = os.getenv("BEYONDCHATS_BLOG_URL", "https://beyondchats.com/blogs/")
        self.scrape_article_count = int(os.getenv("SCRAPE_ARTICLE_COUNT", "5"))
        # "oldest" takes the last N links of the index (assumes newest-first listing), "newest" the first N
        self.scrape_order = os.getenv("SCRAPE_ORDER", "oldest").lower()

        # LLM backends. OpenAI is preferred when both keys are present.
        self.openai_api_key = os.getenv("OPENAI_API_KEY")
        self.gemini_api_key = os.getenv("GEMINI_API_KEY")
        self.openai_model = os.getenv("OPENAI_MODEL", "gpt-4-turbo-preview")
        self.gemini_model = os.getenv("GEMINI_MODEL", "gemini/gemini-2.5-flash")
        self.rate_limit_cooldown = float(os.getenv("RATE_LIMIT_COOLDOWN", "65"))  # seconds
        self.rate_limit_max_attempts = int(os.getenv("RATE_LIMIT_MAX_ATTEMPTS", "5"))

        # Enhancement pipeline
        self.search_result_count = int(os.getenv("SEARCH_RESULT_COUNT", "2"))
        self.enhance_batch_size = int(os.getenv("ENHANCE_BATCH_SIZE", "5"))
        self.update_delay_seconds = float(os.getenv("UPDATE_DELAY_SECONDS", "2"))

        # Browser
        self.user_agent = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)

        # Storage
        self.database_path = os.getenv("DATABASE_PATH", "articles.db")

        # HTTP API
        self.frontend_url = os.getenv("FRONTEND_URL", "http://localhost:5173")
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "3000"))

        # Logging Configuration
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_json = os.getenv("LOG_JSON", "false").lower() == "true"

    @property
    def has_llm_backend(self) -> bool:
        return bool(self.openai_api_key or self.gemini_api_key)

    def validate(self) -> bool:
        """
        Validates that essential configuration parameters are set.
        Returns True if configuration is valid, False otherwise.
        """
        errors = []

        parsed = urlparse(self.blog_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"BEYONDCHATS_BLOG_URL must be an http(s) URL, got '{self.blog_url}'")

        if self.scrape_order not in ("oldest", "newest"):
            errors.append(f"SCRAPE_ORDER must be 'oldest' or 'newest', got '{self.scrape_order}'")

        positive = {
            "SCRAPE_ARTICLE_COUNT": self.scrape_article_count,
            "SEARCH_RESULT_COUNT": self.search_result_count,
            "ENHANCE_BATCH_SIZE": self.enhance_batch_size,
            "RATE_LIMIT_MAX_ATTEMPTS": self.rate_limit_max_attempts,
        }
        errors.extend(f"{name} must be positive, got {value}" for name, value in positive.items() if value <= 0)

        if self.rate_limit_cooldown < 0 or self.update_delay_seconds < 0:
            errors.append("RATE_LIMIT_COOLDOWN and UPDATE_DELAY_SECONDS cannot be negative")

        if errors:
            for error in errors:
                logger.error(error)
            logger.error("Please fix them in your .env file or environment.")
            return False

        if not self.has_llm_backend:
            logger.warning("Neither OPENAI_API_KEY nor GEMINI_API_KEY is set. Article enhancement will fail.")

        logger.info("Configuration loaded and validated successfully.")
        return True

def load_config() -> Config | None:
    """Loads and validates configuration."""
    config = Config()
    if config.validate():
        return config
    return None

# Example .env file content:
"""
# Blog source
BEYONDCHATS_BLOG_URL="https://beyondchats.com/blogs/"
SCRAPE_ARTICLE_COUNT="5"
SCRAPE_ORDER="oldest" # oldest or newest

# LLM backends (at least one is required for enhancement; OpenAI wins if both are set)
OPENAI_API_KEY="YOUR_OPENAI_API_KEY"
GEMINI_API_KEY="YOUR_GEMINI_API_KEY"
# OPENAI_MODEL="gpt-4-turbo-preview"
# GEMINI_MODEL="gemini/gemini-2.5-flash"
RATE_LIMIT_COOLDOWN="65" # seconds
RATE_LIMIT_MAX_ATTEMPTS="5"

# Enhancement
SEARCH_RESULT_COUNT="2"
ENHANCE_BATCH_SIZE="5"
UPDATE_DELAY_SECONDS="2"

# Storage and API
DATABASE_PATH="articles.db"
FRONTEND_URL="http://localhost:5173"
PORT="3000"

LOG_LEVEL="INFO" # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_JSON="false"
"""
