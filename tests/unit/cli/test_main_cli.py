"""Tests for the command-line entry point wiring."""

from __future__ import annotations

import sys
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml

import main
from config.config_manager import DEFAULT_CONFIG_DIR, ConfigManager


@pytest.fixture
def config():
    return ConfigManager(DEFAULT_CONFIG_DIR, env="nonexistent").load()


class TestParseArgs:
    def test_defaults(self):
        args = main.parse_args([])

        assert args.mode == "tui"
        assert args.env == "dev"
        assert args.output is None
        assert args.log_level is None
        assert not args.verbose

    def test_html_mode(self):
        args = main.parse_args(["--mode", "html", "--output", "out/hm.html", "-v"])

        assert args.mode == "html"
        assert args.output == "out/hm.html"
        assert args.verbose

    def test_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            main.parse_args(["--mode", "web"])


class TestCreateRunner:
    @pytest.mark.parametrize(
        "mode,runner",
        [("tui", main.run_tui), ("html", main.run_html), ("headless", main.run_headless)],
    )
    def test_runner_per_mode(self, mode, runner):
        assert main.create_runner(mode) is runner


class TestBuildServices:
    def test_without_api_key(self, config, monkeypatch, tmp_path):
        monkeypatch.delenv("FINNHUB_API_KEY", raising=False)
        config.finnhub.api_key = ""
        monkeypatch.setattr(
            "src.infrastructure.adapters.finnhub.client._SECRETS_PATH", tmp_path / "missing.yaml"
        )

        services = main.build_services(config)

        assert services.provider is None
        assert services.news is None
        assert services.search is None
        assert services.watchlist is None
        assert [f.url for f in services.feeds] == [config.market_feed.url, config.sector_feed.url]
        services.close()

    def test_with_api_key(self, config, monkeypatch):
        monkeypatch.setenv("FINNHUB_API_KEY", "test-key")

        services = main.build_services(config)

        assert services.provider is not None
        assert [i.symbol for i in services.index_quotes.indices] == ["^DJI", "^GSPC", "^IXIC"]
        assert services.search is not None
        assert services.watchlist is not None
        assert len(services.watchlist) == 0
        services.close()


class TestRunHtml:
    @pytest.mark.asyncio
    async def test_writes_snapshot(self, config, sample_records, tmp_path):
        services = MagicMock()
        services.market.refresh = AsyncMock(return_value=True)
        services.sectors.refresh = AsyncMock(return_value=True)
        services.market.has_data = True
        services.market.records = tuple(sample_records)
        services.sectors.records = tuple(sample_records)
        services.index_quotes = None
        output = tmp_path / "out" / "board.html"
        args = main.parse_args(["--mode", "html", "--output", str(output)])

        assert await main.run_html(args, config, services) == 0
        assert output.exists()
        assert "AAPL" in output.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_both_feeds_empty(self, config, tmp_path):
        services = MagicMock()
        services.market.refresh = AsyncMock(return_value=False)
        services.sectors.refresh = AsyncMock(return_value=False)
        services.market.has_data = False
        services.sectors.has_data = False
        services.index_quotes = None
        args = main.parse_args(["--mode", "html", "--output", str(tmp_path / "x.html")])

        assert await main.run_html(args, config, services) == 1
        assert not (tmp_path / "x.html").exists()


class TestExitCodes:
    """Configuration problems exit with code 2 before any run mode starts."""

    BASE = {
        "feeds": {
            "market_heatmap": {"url": "https://example.com/market.csv"},
            "sector_heatmap": {"url": "https://example.com/sector.csv"},
        },
    }

    @pytest.mark.parametrize(
        "override",
        [
            {"colors": {"default_period": "2D"}},
            {"colors": {"scales": {"1D": {"neutral_threshold": 2.0, "max_up": 1.0}}}},
            {"feed_columns": {"bogus": {"title": "Bogus"}}},
        ],
    )
    def test_invalid_display_settings(self, tmp_path, monkeypatch, capsys, override):
        (tmp_path / "base.yaml").write_text(yaml.safe_dump(self.BASE))
        (tmp_path / "dev.yaml").write_text(yaml.safe_dump(override))
        monkeypatch.setattr(sys, "argv", ["main.py", "--mode", "tui", "--config-dir", str(tmp_path)])

        with pytest.raises(SystemExit) as exc_info:
            main.main()

        assert exc_info.value.code == 2
        assert "Configuration error" in capsys.readouterr().out

    def test_missing_base_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["main.py", "--config-dir", str(tmp_path)])

        with pytest.raises(SystemExit) as exc_info:
            main.main()

        assert exc_info.value.code == 2
