"""
Base provider class for market data adapters.

All providers must:
- Inherit from BaseProvider
- Implement required abstract methods
- Handle errors gracefully (don't crash the scan cycle)
- Return domain models, not raw API responses
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from polyarb.core.cache import CacheManager
from polyarb.core.config import Settings, get_settings
from polyarb.core.errors import ProviderError
from polyarb.core.http import HttpClient
from polyarb.core.logging import LoggerMixin
from polyarb.domain.models import BookResult, Market


class ProviderStatus(str, Enum):
    """Provider health status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


@dataclass
class HealthCheckResult:
    """Result of a provider health check."""
    status: ProviderStatus
    message: str
    latency_ms: Optional[float] = None
    details: Optional[dict[str, Any]] = None


@runtime_checkable
class MarketDataSource(Protocol):
    """
    What the scan engine needs from a market data provider.

    list_active_markets raises UpstreamUnavailable when the catalog cannot
    be fetched. get_order_book never raises; failures come back as Unusable.
    """

    async def list_active_markets(self) -> list[Market]:
        ...

    async def get_order_book(self, token_id: str) -> BookResult:
        ...


class BaseProvider(ABC, LoggerMixin):
    """
    Abstract base class for all data providers.

    Subclasses must implement:
    - name: Provider identifier
    - healthcheck(): Check if provider is available

    Features provided by base class:
    - Async HTTP client with retry/timeout
    - Caching
    - Logging
    """

    name: str = "base"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[HttpClient] = None,
        cache: Optional[CacheManager] = None,
    ):
        """
        Initialize provider.

        Args:
            settings: Application settings. Uses global if not provided.
            http_client: HTTP client. Created from settings if not provided.
            cache: Cache manager. Created from settings if not provided.
        """
        self.settings = settings or get_settings()
        self.http = http_client or HttpClient(timeout=self.settings.http_timeout)
        self.cache = cache or CacheManager(ttl=self.settings.book_cache_ttl)

        self._last_error: Optional[Exception] = None

    @abstractmethod
    async def healthcheck(self) -> HealthCheckResult:
        """
        Check if the provider is healthy.

        Returns:
            HealthCheckResult with status and details
        """

    def _get_cached(self, key: str) -> Optional[Any]:
        """Get value from cache with provider prefix."""
        return self.cache.get(f"{self.name}:{key}")

    def _set_cached(self, key: str, value: Any) -> None:
        """Set value in cache with provider prefix."""
        self.cache.set(f"{self.name}:{key}", value)

    async def _make_request(self, url: str, **kwargs) -> Any:
        """
        Make a GET request with error handling.

        Raises:
            ProviderError: On request failure
        """
        kwargs["provider_name"] = self.name
        try:
            return await self.http.aget(url, **kwargs)
        except ProviderError as e:
            self._last_error = e
            raise

    async def _timed_healthcheck(self, url: str, **kwargs) -> HealthCheckResult:
        """Healthcheck by timing a single cheap request."""
        start_time = time.time()
        try:
            await self._make_request(url, **kwargs)
        except ProviderError as e:
            self.logger.warning(f"{self.name} health check failed: {e}")
            return HealthCheckResult(
                status=ProviderStatus.UNAVAILABLE,
                message=f"{self.name} API error: {e}",
                details=e.to_dict(),
            )

        latency = (time.time() - start_time) * 1000
        status = ProviderStatus.HEALTHY if latency < 5000 else ProviderStatus.DEGRADED
        return HealthCheckResult(
            status=status,
            message=f"{self.name} API is responding",
            latency_ms=latency,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.http.aclose()
