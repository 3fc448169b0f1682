"""Tests for CLI helpers."""

from unittest.mock import AsyncMock

import pytest
from click.testing import CliRunner

from factories import FIXED_NOW, FakeProvider, make_market
from polyarb.arb.engine import ScanEngine
from polyarb.cli.main import build_scanner_config, display_state, main
from polyarb.core.config import ScannerConfig


class TestBuildScannerConfig:
    """Tests for command-line overrides."""

    def test_overrides_yaml(self):
        config = build_scanner_config(
            {"scanner": {"min_profit_percent": 0.5, "batch_size": 4}},
            min_profit=2.0,
            max_risk=3,
        )

        assert config.min_profit_percent == 2.0
        assert config.max_risk_score == 3
        assert config.batch_size == 4

    def test_invalid_override_raises(self):
        with pytest.raises(ValueError):
            build_scanner_config({}, max_risk=11)


class TestDisplayState:
    """Tests for terminal rendering."""

    @pytest.mark.asyncio
    async def test_renders_tables(self, capsys):
        market = make_market("m1", question="Will it snow in Miami?")
        provider = FakeProvider(markets=[market])
        provider.quote(market, 0.40, 0.39, 0.50, 0.49)
        engine = ScanEngine(provider, config=ScannerConfig(), clock=lambda: FIXED_NOW, sleep=AsyncMock())
        await engine.run_scan()

        display_state(engine.current_state(), top=5)
        out = capsys.readouterr().out

        assert "Opportunities" in out
        assert "Most Liquid Markets" in out
        assert "Will it snow" in out

    def test_renders_empty_state(self, capsys):
        engine = ScanEngine(FakeProvider(), config=ScannerConfig(), clock=lambda: FIXED_NOW)

        display_state(engine.current_state(), top=5)

        assert "No opportunities found" in capsys.readouterr().out


class TestMain:
    """Tests for the click entry point."""

    def test_no_mode_shows_help(self):
        result = CliRunner().invoke(main, [])

        assert result.exit_code == 0
        assert "--scheduled" in result.output

    def test_rejects_out_of_range_risk(self):
        result = CliRunner().invoke(main, ["--once", "--max-risk", "12"])

        assert result.exit_code != 0
