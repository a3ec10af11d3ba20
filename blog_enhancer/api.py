"""FastAPI application exposing the article store and the pipelines."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from blog_enhancer.database import Database
from blog_enhancer.errors import DuplicateArticleError, NotFoundError
from blog_enhancer.orchestrator import Orchestrator

logger = logging.getLogger(__name__)


class ArticleCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    content: str = Field(min_length=1)
    original_url: str = Field(alias="originalUrl")
    author: Optional[str] = None
    published_date: Optional[datetime] = Field(default=None, alias="publishedDate")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("author")
    @classmethod
    def strip_author(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value else value

    @field_validator("original_url")
    @classmethod
    def valid_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Valid URL is required")
        return value


class ArticleUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    published_date: Optional[datetime] = Field(default=None, alias="publishedDate")
    is_updated: Optional[bool] = Field(default=None, alias="isUpdated")
    updated_content: Optional[str] = Field(default=None, alias="updatedContent")
    references: Optional[List[str]] = None


def success(data: dict, message: Optional[str] = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    body = {"status": "success"}
    if message:
        body["message"] = message
    body["data"] = data
    return JSONResponse(body, status_code=status_code)


def error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"status": "error", "message": message}, status_code=status_code)


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.get("")
async def list_articles(
    db: Annotated[Database, Depends(get_db)],
    updated: Annotated[Optional[bool], Query(description="Filter by enhancement state")] = None,
):
    """List articles, newest first."""
    articles = db.list_articles(is_updated=updated)
    return success({"count": len(articles), "articles": [a.to_dict() for a in articles]})


@router.post("/scrape")
async def scrape_articles(orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)]):
    """Scrape the blog and store articles that are not in the database yet."""
    logger.info("Received scrape request")
    outcome = await orchestrator.scrape_and_store()
    if outcome.scraped_count == 0:
        return success({"count": 0, "articles": []}, message="No articles found to scrape")
    return success(
        {
            "count": len(outcome.saved),
            "skipped": len(outcome.skipped),
            "articles": [a.to_dict() for a in outcome.saved],
        },
        message=f"Scraping completed. Saved {len(outcome.saved)} new articles.",
    )


@router.post("/enhance")
async def enhance_articles(
    request: Request,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    """Enhance the oldest batch of articles that are not updated yet.

    Always answers 200; per-article failures are reported in the tallies.
    """
    logger.info("Received enhance request")
    config: Config = request.app.state.config
    outcome = await orchestrator.enhance_pending(limit=config.enhance_batch_size)
    if outcome.success_count == 0 and outcome.failure_count == 0:
        return success({"count": 0, "failed": 0, "articles": []}, message="No articles need enhancement.")
    return success(
        {
            "count": outcome.success_count,
            "failed": outcome.failure_count,
            "articles": [a.to_dict() for a in outcome.succeeded],
        },
        message=(
            f"Enhancement completed. Updated {outcome.success_count} articles. "
            f"Failed: {outcome.failure_count}."
        ),
    )


@router.post("/{article_id}/enhance")
async def enhance_article(article_id: str, orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)]):
    logger.info(f"Received enhance request for article: {article_id}")
    article = await orchestrator.enhance_by_id(article_id)
    return success({"article": article.to_dict()}, message="Article enhanced successfully.")


@router.get("/{article_id}")
async def get_article(article_id: str, db: Annotated[Database, Depends(get_db)]):
    article = db.get_article(article_id)
    if article is None:
        raise NotFoundError(article_id)
    return success({"article": article.to_dict()})


@router.post("")
async def create_article(payload: ArticleCreate, db: Annotated[Database, Depends(get_db)]):
    article = db.create_article(
        title=payload.title,
        content=payload.content,
        original_url=payload.original_url,
        author=payload.author,
        published_date=payload.published_date,
    )
    return success({"article": article.to_dict()}, status_code=status.HTTP_201_CREATED)


@router.put("/{article_id}")
async def update_article(article_id: str, payload: ArticleUpdate, db: Annotated[Database, Depends(get_db)]):
    fields = payload.model_dump(exclude_none=True)
    try:
        article = db.update_article(article_id, **fields)
    except ValueError as e:
        return error(str(e), status.HTTP_400_BAD_REQUEST)
    return success({"article": article.to_dict()})


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(article_id: str, db: Annotated[Database, Depends(get_db)]):
    db.delete_article(article_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_failed(request: Request, exc: RequestValidationError):
        details = [f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in exc.errors()]
        logger.info(f"Validation failed for {request.method} {request.url.path}: {details}")
        return JSONResponse(
            {"status": "error", "message": "Validation failed", "errors": details},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return error("Article not found", status.HTTP_404_NOT_FOUND)

    @app.exception_handler(DuplicateArticleError)
    async def duplicate(request: Request, exc: DuplicateArticleError):
        return error("Article with this URL already exists", status.HTTP_409_CONFLICT)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return error(message, exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return error("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app(
    config: Config,
    db: Optional[Database] = None,
    orchestrator: Optional[Orchestrator] = None,
) -> FastAPI:
    """Builds the API. A database passed in by the caller is not closed on shutdown."""
    owns_db = db is None
    db = db or Database(config.database_path)
    orchestrator = orchestrator or Orchestrator.from_config(config, db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_db:
            db.close()

    app = FastAPI(
        title="Blog Enhancer API",
        description="Article management API with LLM enhancement",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.db = db
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    @app.get("/health")
    async def health():
        return {
            "status": "success",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(router)
    _register_error_handlers(app)
    return app
