from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Article:
    """An article as stored in the article database."""
    id: str
    title: str
    content: str
    original_url: str
    author: Optional[str] = None
    published_date: Optional[datetime] = None
    is_updated: bool = False
    updated_content: Optional[str] = None
    references: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON representation used by the HTTP API."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author,
            "publishedDate": _isoformat(self.published_date),
            "originalUrl": self.original_url,
            "isUpdated": self.is_updated,
            "updatedContent": self.updated_content,
            "references": list(self.references),
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }


@dataclass
class ScrapedArticle:
    """An article scraped from the blog index, not yet persisted."""
    title: str
    content: str
    original_url: str
    author: Optional[str] = None
    published_date: Optional[datetime] = None


@dataclass
class SearchResult:
    title: str
    url: str
    snippet: str = ""


@dataclass
class ExtractedContent:
    """Best-effort main content of one external page."""
    title: str
    content: str
    url: str


@dataclass
class RewriteResult:
    updated_content: str
    references: List[str] = field(default_factory=list)


@dataclass
class BatchOutcome:
    """Accumulated result of an enhancement batch."""
    succeeded: List[Article] = field(default_factory=list)
    failed: List[Tuple[str, str, str]] = field(default_factory=list)  # (article id, title, error)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


@dataclass
class ScrapeOutcome:
    scraped_count: int = 0
    saved: List[Article] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
