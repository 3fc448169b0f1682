"""
Core module - Engineering foundation

Contains configuration, logging, HTTP client, caching, and utilities.
"""

from polyarb.core.config import (
    AlertConfig,
    ScannerConfig,
    Settings,
    get_settings,
    load_alert_config,
    load_scanner_config,
    load_yaml_config,
)
from polyarb.core.errors import (
    PolyArbError,
    ProviderError,
    ConfigurationError,
    UpstreamUnavailable,
    TokenBookUnusable,
    NotificationDeliveryFailed,
)
from polyarb.core.logging import setup_logging, get_logger

__all__ = [
    "AlertConfig",
    "ScannerConfig",
    "Settings",
    "get_settings",
    "load_alert_config",
    "load_scanner_config",
    "load_yaml_config",
    "PolyArbError",
    "ProviderError",
    "ConfigurationError",
    "UpstreamUnavailable",
    "TokenBookUnusable",
    "NotificationDeliveryFailed",
    "setup_logging",
    "get_logger",
]
