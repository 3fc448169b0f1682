"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from polyarb.core.config import (
    AlertConfig,
    ScannerConfig,
    Settings,
    load_alert_config,
    load_scanner_config,
    load_yaml_config,
)
from polyarb.core.errors import ConfigurationError


@pytest.fixture
def settings():
    return Settings(_env_file=None)


class TestScannerConfig:
    """Tests for ScannerConfig."""

    def test_defaults(self):
        config = ScannerConfig()

        assert config.min_profit_percent == 0.5
        assert config.max_risk_score == 7
        assert config.scan_interval_seconds == 30
        assert config.min_liquidity is None
        assert config.batch_size == 10
        assert config.max_near_misses == 20
        assert config.max_live_markets == 15

    @pytest.mark.parametrize("value", [0, 11])
    def test_risk_score_range(self, value):
        with pytest.raises(ValidationError):
            ScannerConfig(max_risk_score=value)

    def test_no_category_filter_allows_all(self):
        assert ScannerConfig().allows_category("anything")
        assert ScannerConfig().allows_category(None)

    def test_include_is_case_insensitive(self):
        config = ScannerConfig(include_categories=["Politics"])

        assert config.allows_category("politics")
        assert config.allows_category(" POLITICS ")
        assert not config.allows_category("sports")

    def test_exclude_wins(self):
        config = ScannerConfig(include_categories=["sports"], exclude_categories=["Sports"])

        assert not config.allows_category("sports")


class TestAlertConfig:
    """Tests for AlertConfig."""

    def test_defaults(self):
        config = AlertConfig()

        assert config.cooldown_seconds == 60
        assert config.min_profit_percent == 1.0
        assert config.max_per_cycle == 3

    def test_enabled_requires_positive_max_per_cycle(self):
        with pytest.raises(ValidationError):
            AlertConfig(max_per_cycle=0)

        assert AlertConfig(enabled=False, max_per_cycle=0).max_per_cycle == 0


class TestLoaders:
    """Tests for YAML loaders."""

    def test_load_yaml_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("scanner:\n  min_profit_percent: 1.5\n", encoding="utf-8")

        assert load_yaml_config(str(path)) == {"scanner": {"min_profit_percent": 1.5}}

    def test_missing_yaml_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_config(str(tmp_path / "missing.yaml"))

    def test_scanner_section(self, settings):
        config = load_scanner_config({"scanner": {"min_liquidity": 100, "batch_size": 5}}, settings)

        assert config.min_liquidity == 100
        assert config.batch_size == 5

    def test_env_overrides_yaml(self):
        settings = Settings(_env_file=None, polyarb_min_profit=2.5, polyarb_max_risk=4)

        config = load_scanner_config({"scanner": {"min_profit_percent": 1.0, "max_risk_score": 9}}, settings)

        assert config.min_profit_percent == 2.5
        assert config.max_risk_score == 4

    def test_invalid_section_raises_configuration_error(self, settings):
        with pytest.raises(ConfigurationError):
            load_scanner_config({"scanner": {"batch_size": 0}}, settings)

    def test_missing_sections_use_defaults(self, settings):
        assert load_scanner_config({}, settings) == ScannerConfig()
        assert load_alert_config({"alerts": None}) == AlertConfig()

    def test_invalid_alerts_raise_configuration_error(self):
        with pytest.raises(ConfigurationError):
            load_alert_config({"alerts": {"cooldown_seconds": -1}})


class TestSettings:
    """Tests for Settings."""

    def test_log_level_is_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")
