import argparse
import asyncio
import logging
import sys
from typing import Optional

from config import Config, load_config
from blog_enhancer.database import Database
from blog_enhancer.errors import ConfigurationError
from blog_enhancer.orchestrator import Orchestrator
from blog_enhancer.utils import setup_logging

logger = logging.getLogger(__name__)

async def run_scrape(config: Config) -> int:
    """Scrapes the blog and stores new articles. Returns the process exit code."""
    logger.info("Starting article scraping process...")
    db = Database(config.database_path)
    try:
        orchestrator = Orchestrator.from_config(config, db)
        outcome = await orchestrator.scrape_and_store()
    except Exception as e:
        logger.error(f"Scraping script failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()

    if outcome.scraped_count == 0:
        logger.warning("No articles were scraped")
        return 0

    logger.info("Summary:")
    logger.info(f"   Total scraped: {outcome.scraped_count}")
    logger.info(f"   Saved: {len(outcome.saved)}")
    logger.info(f"   Skipped (duplicates): {len(outcome.skipped)}")
    return 0

async def run_update(config: Config, limit: Optional[int], delay: float) -> int:
    """Enhances pending articles one by one. Returns the process exit code."""
    logger.info("Starting article update process...")
    db = Database(config.database_path)
    try:
        orchestrator = Orchestrator.from_config(config, db)
        # Without a backend every article would fail the same way; stop before touching the network.
        if orchestrator.rewriter.backend is None:
            raise ConfigurationError("Neither OPENAI_API_KEY nor GEMINI_API_KEY is set in environment variables")
        outcome = await orchestrator.enhance_pending(limit=limit, delay_seconds=delay)
    except Exception as e:
        logger.error(f"Update script failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()

    logger.info("=" * 80)
    logger.info("   Update Summary:")
    logger.info(f"   Total articles: {outcome.success_count + outcome.failure_count}")
    logger.info(f"   Successfully updated: {outcome.success_count}")
    logger.info(f"   Failed: {outcome.failure_count}")
    logger.info("=" * 80)
    return 0

def run_server(config: Config, host: str, port: int) -> int:
    import uvicorn
    from blog_enhancer.api import create_app

    app = create_app(config)
    logger.info(f"Server running on http://{host}:{port} (docs at /docs)")
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape blog articles and enhance them with an LLM.")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL (DEBUG, INFO, ...).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("scrape", help="Scrape the blog index and store new articles.")

    update = subparsers.add_parser("update", help="Enhance articles that are not updated yet.")
    update.add_argument("--limit", type=int, default=None, help="Maximum number of articles (default: all pending).")
    update.add_argument("--delay", type=float, default=None, help="Seconds to wait between articles (default: UPDATE_DELAY_SECONDS).")

    serve = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser

def main(argv=None) -> int:
    """The main entry point of the application."""
    args = build_parser().parse_args(argv)

    config = load_config()
    if not config:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Failed to load configuration. Exiting.")
        return 1
    setup_logging(args.log_level or config.log_level, json_format=config.log_json)

    if args.command == "scrape":
        return asyncio.run(run_scrape(config))
    if args.command == "update":
        delay = config.update_delay_seconds if args.delay is None else args.delay
        return asyncio.run(run_update(config, args.limit, delay))
    return run_server(config, args.host or config.host, args.port or config.port)

if __name__ == '__main__':
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Application shutting down.")
