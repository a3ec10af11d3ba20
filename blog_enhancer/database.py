import json
import sqlite3
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from blog_enhancer.errors import DuplicateArticleError, NotFoundError
from blog_enhancer.models import Article

logger = logging.getLogger(__name__)

# Columns a caller may change through update_article().
UPDATABLE_FIELDS = (
    "title", "content", "author", "published_date", "is_updated", "updated_content", "references",
)

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _to_db_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

def _from_db_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None

class Database:
    """
    SQLite-backed article store. original_url is unique.
    """
    def __init__(self, db_path: str = "articles.db"):
        """
        Initializes the Database handler.

        Args:
            db_path (str): The path to the SQLite database file.
        """
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None
        self._setup_database()

    def _setup_database(self):
        """
        Connects to the database and creates the articles table if it doesn't exist.
        """
        # The API serves requests from a worker thread, so the connection is not pinned to this one.
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS articles (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                author TEXT,
                published_date TEXT,
                original_url TEXT NOT NULL UNIQUE,
                is_updated INTEGER NOT NULL DEFAULT 0,
                updated_content TEXT,
                "references" TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self.conn.commit()
        logger.info(f"Database setup complete at {self.db_path}")

    def _row_to_article(self, row: sqlite3.Row) -> Article:
        return Article(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            author=row["author"],
            published_date=_from_db_datetime(row["published_date"]),
            original_url=row["original_url"],
            is_updated=bool(row["is_updated"]),
            updated_content=row["updated_content"],
            references=json.loads(row["references"]),
            created_at=_from_db_datetime(row["created_at"]),
            updated_at=_from_db_datetime(row["updated_at"]),
        )

    def get_article(self, article_id: str) -> Optional[Article]:
        row = self.conn.execute("SELECT * FROM articles WHERE id = ?", (article_id,)).fetchone()
        return self._row_to_article(row) if row else None

    def get_article_by_url(self, original_url: str) -> Optional[Article]:
        row = self.conn.execute("SELECT * FROM articles WHERE original_url = ?", (original_url,)).fetchone()
        return self._row_to_article(row) if row else None

    def list_articles(
        self,
        is_updated: Optional[bool] = None,
        limit: Optional[int] = None,
        oldest_first: bool = False,
    ) -> List[Article]:
        """
        Lists articles, newest first unless oldest_first is set.

        Args:
            is_updated (bool): Only return articles with this enhancement state.
            limit (int): Maximum number of articles to return.
            oldest_first (bool): Order by creation time ascending.
        """
        query = "SELECT * FROM articles"
        params: List[Any] = []
        if is_updated is not None:
            query += " WHERE is_updated = ?"
            params.append(int(is_updated))
        query += f" ORDER BY created_at {'ASC' if oldest_first else 'DESC'}, rowid {'ASC' if oldest_first else 'DESC'}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        return [self._row_to_article(row) for row in self.conn.execute(query, params).fetchall()]

    def create_article(
        self,
        title: str,
        content: str,
        original_url: str,
        author: Optional[str] = None,
        published_date: Optional[datetime] = None,
    ) -> Article:
        """
        Inserts a new, not yet enhanced article.

        Raises:
            DuplicateArticleError: An article with original_url already exists.
        """
        now = _to_db_datetime(_now())
        article_id = str(uuid.uuid4())
        try:
            self.conn.execute(
                """
                INSERT INTO articles (id, title, content, author, published_date, original_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (article_id, title, content, author, _to_db_datetime(published_date), original_url, now, now),
            )
            self.conn.commit()
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            logger.warning(f"Attempted to add duplicate article URL to database: {original_url}")
            raise DuplicateArticleError(original_url) from e

        logger.info(f"Article created: {article_id} - {title}")
        return self.get_article(article_id)

    def update_article(self, article_id: str, **fields: Any) -> Article:
        """
        Applies a partial update and returns the stored article.

        Raises:
            NotFoundError: No article has this id.
            ValueError: An unknown field was given, or is_updated would go from true back to false.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown article fields: {', '.join(sorted(unknown))}")

        existing = self.get_article(article_id)
        if existing is None:
            raise NotFoundError(article_id)
        if existing.is_updated and fields.get("is_updated") is False:
            raise ValueError("isUpdated cannot be reset once an article has been enhanced")
        if fields.get("is_updated") and not fields.get("updated_content", existing.updated_content):
            raise ValueError("isUpdated requires updatedContent")

        values: Dict[str, Any] = {}
        for name, value in fields.items():
            if name == "published_date":
                value = _to_db_datetime(value)
            elif name == "is_updated":
                value = int(value)
            elif name == "references":
                value = json.dumps(list(value))
            values[name] = value
        values["updated_at"] = _to_db_datetime(_now())

        assignments = ", ".join(f'"{name}" = ?' for name in values)
        self.conn.execute(f"UPDATE articles SET {assignments} WHERE id = ?", (*values.values(), article_id))
        self.conn.commit()
        logger.info(f"Article updated: {article_id} - {existing.title}")
        return self.get_article(article_id)

    def mark_enhanced(self, article_id: str, updated_content: str, references: List[str]) -> Article:
        """
        Stores the enhancement result. The flag, content and references are
        written together so is_updated is never true without updated_content.
        """
        if not updated_content:
            raise ValueError("updated_content is required to mark an article as enhanced")
        return self.update_article(
            article_id,
            is_updated=True,
            updated_content=updated_content,
            references=references,
        )

    def delete_article(self, article_id: str) -> None:
        cursor = self.conn.execute("DELETE FROM articles WHERE id = ?", (article_id,))
        self.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(article_id)
        logger.info(f"Article deleted: {article_id}")

    def close(self):
        """
        Closes the database connection.
        """
        if self.conn:
            self.conn.close()
            logger.info("Database connection closed.")
            self.conn = None
