"""Tests for the environment-driven configuration."""

from config import Config, load_config


def test_defaults(clean_env) -> None:
    config = Config()
    assert config.scrape_article_count == 5
    assert config.scrape_order == "oldest"
    assert config.search_result_count == 2
    assert config.enhance_batch_size == 5
    assert config.rate_limit_cooldown == 65
    assert config.rate_limit_max_attempts == 5
    assert config.port == 3000
    assert not config.has_llm_backend


def test_environment_overrides(clean_env) -> None:
    clean_env.setenv("SCRAPE_ORDER", "NEWEST")
    clean_env.setenv("SCRAPE_ARTICLE_COUNT", "3")
    clean_env.setenv("GEMINI_API_KEY", "gm-test")

    config = load_config()

    assert config is not None
    assert config.scrape_order == "newest"
    assert config.scrape_article_count == 3
    assert config.has_llm_backend


def test_missing_llm_keys_is_only_a_warning(clean_env) -> None:
    assert load_config() is not None


def test_invalid_values_are_rejected(clean_env) -> None:
    clean_env.setenv("BEYONDCHATS_BLOG_URL", "ftp://blog.example.com")
    assert load_config() is None

    clean_env.setenv("BEYONDCHATS_BLOG_URL", "https://blog.example.com/blogs/")
    clean_env.setenv("SCRAPE_ORDER", "random")
    assert load_config() is None

    clean_env.setenv("SCRAPE_ORDER", "oldest")
    clean_env.setenv("SEARCH_RESULT_COUNT", "0")
    assert load_config() is None
