"""Tests for the command-line entry points."""

from unittest.mock import AsyncMock, patch

import pytest

import main
from blog_enhancer.models import BatchOutcome, ScrapeOutcome


def test_parser_update_options() -> None:
    args = main.build_parser().parse_args(["update", "--limit", "3", "--delay", "0.5"])
    assert args.command == "update"
    assert args.limit == 3
    assert args.delay == 0.5


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        main.build_parser().parse_args([])


@pytest.mark.asyncio
class TestRunUpdate:
    async def test_without_backend_exits_with_error(self, config) -> None:
        with patch.object(main.Orchestrator, "enhance_pending", new_callable=AsyncMock) as enhance_pending:
            assert await main.run_update(config, limit=None, delay=0) == 1
        enhance_pending.assert_not_awaited()

    async def test_runs_batch(self, config) -> None:
        config.openai_api_key = "sk-test"
        with patch.object(main.Orchestrator, "enhance_pending", new_callable=AsyncMock) as enhance_pending:
            enhance_pending.return_value = BatchOutcome()
            assert await main.run_update(config, limit=None, delay=2) == 0
        enhance_pending.assert_awaited_once_with(limit=None, delay_seconds=2)


@pytest.mark.asyncio
class TestRunScrape:
    async def test_failure_exits_with_error(self, config) -> None:
        with patch.object(main.Orchestrator, "scrape_and_store", new_callable=AsyncMock) as scrape:
            scrape.side_effect = RuntimeError("index unreachable")
            assert await main.run_scrape(config) == 1

    async def test_success(self, config) -> None:
        with patch.object(main.Orchestrator, "scrape_and_store", new_callable=AsyncMock) as scrape:
            scrape.return_value = ScrapeOutcome(scraped_count=0)
            assert await main.run_scrape(config) == 0


def test_main_update_uses_configured_delay(clean_env, tmp_path) -> None:
    clean_env.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))
    clean_env.setenv("UPDATE_DELAY_SECONDS", "7")

    with patch.object(main, "run_update", new_callable=AsyncMock, return_value=0) as run_update, \
            patch.object(main, "setup_logging"):
        assert main.main(["update"]) == 0

    _config, limit, delay = run_update.call_args.args
    assert limit is None
    assert delay == 7


def test_main_with_invalid_config(clean_env) -> None:
    clean_env.setenv("SCRAPE_ORDER", "random")
    with patch.object(main, "setup_logging"):
        assert main.main(["scrape"]) == 1
