"""Shared fixtures. Browsers and LLMs are never touched by the test suite."""

from __future__ import annotations

import pytest

from config import Config
from blog_enhancer.database import Database
from blog_enhancer.errors import NavigationError

ENV_KEYS = (
    "BEYONDCHATS_BLOG_URL",
    "SCRAPE_ARTICLE_COUNT",
    "SCRAPE_ORDER",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "RATE_LIMIT_COOLDOWN",
    "RATE_LIMIT_MAX_ATTEMPTS",
    "SEARCH_RESULT_COUNT",
    "ENHANCE_BATCH_SIZE",
    "UPDATE_DELAY_SECONDS",
    "DATABASE_PATH",
    "FRONTEND_URL",
)


class FakeFetcher:
    """Stands in for PageFetcher: serves canned HTML per URL and records calls."""

    def __init__(self, pages: dict[str, str | Exception]):
        self.pages = pages
        self.calls: list[tuple[str, dict]] = []

    async def fetch(self, url: str, **kwargs) -> str:
        self.calls.append((url, kwargs))
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            raise NavigationError(url, "net::ERR_NAME_NOT_RESOLVED")
        return page


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def config(clean_env, tmp_path) -> Config:
    cfg = Config()
    cfg.database_path = str(tmp_path / "articles.db")
    cfg.blog_url = "https://blog.example.com/blogs/"
    return cfg


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "test.db"))
    yield database
    database.close()


@pytest.fixture
def make_fetcher():
    return FakeFetcher
