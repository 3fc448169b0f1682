"""
Providers module - Data adapters

Each provider wraps an external API and returns domain models.
All providers inherit from BaseProvider for consistent interface.
"""

from polyarb.providers.base import (
    BaseProvider,
    HealthCheckResult,
    MarketDataSource,
    ProviderStatus,
)
from polyarb.providers.polymarket import PolymarketProvider

__all__ = [
    "BaseProvider",
    "HealthCheckResult",
    "MarketDataSource",
    "ProviderStatus",
    "PolymarketProvider",
]
