"""
Configuration management for polyarb.

Supports:
- Local development: .env file
- YAML config for scanner and alert business rules
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from polyarb.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==============================================
    # Environment
    # ==============================================
    polyarb_env: str = Field(default="local", description="Environment: local/cloud")
    log_level: str = Field(default="INFO")
    timezone: str = Field(default="America/New_York")

    # ==============================================
    # Polymarket CLOB
    # ==============================================
    clob_api_url: str = Field(default="https://clob.polymarket.com")
    catalog_page_limit: int = Field(default=100, description="Markets requested per page")
    catalog_max_pages: int = Field(default=5, description="Max catalog pages per scan")
    book_cache_ttl: int = Field(default=5, description="Order book cache TTL in seconds")

    # ==============================================
    # Telegram
    # ==============================================
    telegram_bot_token: Optional[str] = Field(default=None)
    telegram_chat_id: Optional[str] = Field(default=None)
    telegram_enabled: bool = Field(default=False)

    # ==============================================
    # Runtime overrides
    # ==============================================
    polyarb_auto_scan: bool = Field(default=True)
    polyarb_min_profit: Optional[float] = Field(default=None, description="Overrides scanner.min_profit_percent")
    polyarb_max_risk: Optional[int] = Field(default=None, description="Overrides scanner.max_risk_score")

    http_timeout: int = Field(default=30, description="HTTP timeout in seconds")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @property
    def is_local(self) -> bool:
        return self.polyarb_env == "local"


class ScannerConfig(BaseModel):
    """
    Thresholds and tunables for the scan cycle.

    Acceptance thresholds (min profit, max risk, min liquidity) are read by
    the opportunity builder; the rest shape how the engine walks the catalog.
    """

    min_profit_percent: float = Field(default=0.5, ge=0)
    max_risk_score: int = Field(default=7, ge=1, le=10)
    scan_interval_ms: int = Field(default=30000, gt=0)
    min_liquidity: Optional[float] = Field(default=None, ge=0)
    include_categories: Optional[list[str]] = None
    exclude_categories: Optional[list[str]] = None

    batch_size: int = Field(default=10, gt=0)
    batch_delay_seconds: float = Field(default=0.1, ge=0)
    max_markets_per_scan: Optional[int] = Field(default=None, gt=0)

    max_opportunities: int = Field(default=100, gt=0)
    max_near_misses: int = Field(default=20, gt=0)
    max_live_markets: int = Field(default=15, gt=0)
    near_miss_threshold: float = Field(default=0.05, gt=0)

    @property
    def scan_interval_seconds(self) -> float:
        return self.scan_interval_ms / 1000

    def allows_category(self, category: Optional[str]) -> bool:
        """Exclude list wins over include list for a category in both."""
        name = (category or "").strip().lower()
        if self.exclude_categories:
            if name in {c.strip().lower() for c in self.exclude_categories}:
                return False
        if self.include_categories:
            return name in {c.strip().lower() for c in self.include_categories}
        return True


class AlertConfig(BaseModel):
    """Alert gate configuration."""

    enabled: bool = True
    cooldown_seconds: float = Field(default=60.0, ge=0)
    min_profit_percent: float = Field(default=1.0)
    max_risk_score: int = Field(default=10, ge=1, le=10)
    max_per_cycle: int = Field(default=3, ge=0)
    send_delay_seconds: float = Field(default=0.5, ge=0)

    @model_validator(mode="after")
    def check_max_per_cycle(self) -> "AlertConfig":
        if self.enabled and self.max_per_cycle == 0:
            raise ValueError("max_per_cycle must be positive when alerts are enabled")
        return self


class ConfigLoader:
    """
    Configuration loader.

    - local: Load from .env file
    """

    def __init__(self, env: Optional[str] = None):
        self.env = env or os.getenv("POLYARB_ENV", "local")

    def load(self) -> Settings:
        """Load settings based on environment."""
        return Settings()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    loader = ConfigLoader()
    return loader.load()


def find_project_root() -> Optional[Path]:
    """Find the directory holding pyproject.toml above this file."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def load_yaml_config(config_path: Optional[str] = None) -> dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to config file. Defaults to config/config.yaml

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        root = find_project_root()
        if root is not None:
            config_path = str(root / "config" / "config.yaml")
        else:
            config_path = "config/config.yaml"

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_scanner_config(
    config: Optional[dict[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> ScannerConfig:
    """
    Build ScannerConfig from the `scanner` YAML section plus env overrides.

    Raises:
        ConfigurationError: If the section fails validation
    """
    if config is None:
        config = load_yaml_config()
    settings = settings or get_settings()

    section = dict(config.get("scanner", {}) or {})
    if settings.polyarb_min_profit is not None:
        section["min_profit_percent"] = settings.polyarb_min_profit
    if settings.polyarb_max_risk is not None:
        section["max_risk_score"] = settings.polyarb_max_risk

    try:
        return ScannerConfig(**section)
    except ValueError as e:
        raise ConfigurationError(f"Invalid scanner config: {e}") from e


def load_alert_config(config: Optional[dict[str, Any]] = None) -> AlertConfig:
    """Build AlertConfig from the `alerts` YAML section."""
    if config is None:
        config = load_yaml_config()
    try:
        return AlertConfig(**(config.get("alerts", {}) or {}))
    except ValueError as e:
        raise ConfigurationError(f"Invalid alert config: {e}") from e
