"""
Polymarket provider for prediction market data.

Talks to the public CLOB API:
- /sampling-markets: Paginated catalog of markets with an order book
- /book: Order book for a single outcome token
"""

from typing import Any, Optional

from polyarb.core.errors import ProviderError, TokenBookUnusable, UpstreamUnavailable
from polyarb.core.timeutil import format_timestamp, now_utc
from polyarb.domain.models import (
    BookResult,
    Market,
    OrderBookSnapshot,
    Token,
    Unusable,
    UnusableReason,
    Usable,
)
from polyarb.providers.base import BaseProvider, HealthCheckResult

# Cursor the CLOB returns once the last page has been served
END_CURSOR = "LTE="


class PolymarketProvider(BaseProvider):
    """
    Polymarket CLOB provider.

    Provides:
    - Active binary markets (catalog)
    - Per-token order books, cached for a few seconds
    """

    name = "polymarket"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = self.settings.clob_api_url.rstrip("/")

    async def healthcheck(self) -> HealthCheckResult:
        """Check CLOB API health."""
        return await self._timed_healthcheck(f"{self.base_url}/time")

    async def list_active_markets(self) -> list[Market]:
        """
        Fetch the market catalog.

        Walks /sampling-markets pages until the end cursor or
        catalog_max_pages. A failure after at least one page keeps what was
        already fetched.

        Returns:
            Markets that are active, not closed and have an order book

        Raises:
            UpstreamUnavailable: If no page could be fetched
        """
        markets: list[Market] = []
        cursor: Optional[str] = None
        pages = 0

        while pages < self.settings.catalog_max_pages:
            params: dict[str, Any] = {"limit": self.settings.catalog_page_limit}
            if cursor:
                params["next_cursor"] = cursor

            try:
                response = await self._make_request(
                    f"{self.base_url}/sampling-markets",
                    params=params,
                )
            except ProviderError as e:
                if pages == 0:
                    raise UpstreamUnavailable(
                        f"Market catalog fetch failed: {e.message}",
                        provider=self.name,
                    ) from e
                self.logger.warning(f"Catalog page {pages + 1} failed, keeping {len(markets)} markets: {e}")
                break

            pages += 1
            if isinstance(response, list):
                items, cursor = response, None
            else:
                items = response.get("data") or []
                cursor = response.get("next_cursor")

            for item in items:
                try:
                    market = self._parse_market(item)
                except (TypeError, ValueError, AttributeError) as e:
                    self.logger.debug(f"Skipping malformed catalog entry: {e}")
                    continue
                if market is not None:
                    markets.append(market)

            if not cursor or cursor == END_CURSOR:
                break

        self.logger.info(f"Fetched {len(markets)} active markets ({pages} pages)")
        return markets

    def _parse_market(self, item: dict[str, Any]) -> Optional[Market]:
        """Parse one catalog entry, skipping inactive or book-less markets."""
        if not item.get("active") or item.get("closed") or not item.get("enable_order_book"):
            return None

        market_id = item.get("condition_id") or item.get("id")
        if not market_id:
            return None

        tokens = []
        for raw in item.get("tokens") or []:
            token_id = raw.get("token_id")
            if not token_id:
                continue
            price = raw.get("price")
            tokens.append(Token(
                token_id=str(token_id),
                outcome=raw.get("outcome", ""),
                price=float(price) if price is not None else None,
            ))

        return Market(
            market_id=market_id,
            question=item.get("question", ""),
            tokens=tokens,
            category=item.get("category") or "unknown",
            end_date=item.get("end_date_iso"),
            slug=item.get("market_slug", ""),
            active=True,
            closed=False,
            accepting_orders=item.get("accepting_orders", True),
            volume=float(item.get("volume", 0) or 0),
        )

    async def get_order_book(self, token_id: str) -> BookResult:
        """
        Get order book for one outcome token.

        Never raises: a missing book, transport failure or malformed
        payload comes back as Unusable.

        Args:
            token_id: CLOB token ID

        Returns:
            Usable with a normalized snapshot, or Unusable with the reason
        """
        cache_key = f"book:{token_id}"
        cached = self._get_cached(cache_key)
        if cached is not None:
            return cached

        try:
            snapshot = await self._fetch_book(token_id)
        except TokenBookUnusable as e:
            self.logger.debug(f"Book for {token_id} unusable ({e.reason}): {e.message}")
            return Unusable(token_id=token_id, reason=UnusableReason(e.reason), detail=e.message)

        result = Usable(snapshot)
        self._set_cached(cache_key, result)
        return result

    async def _fetch_book(self, token_id: str) -> OrderBookSnapshot:
        try:
            response = await self._make_request(
                f"{self.base_url}/book",
                params={"token_id": token_id},
            )
        except ProviderError as e:
            reason = UnusableReason.NO_BOOK if e.status_code == 404 else UnusableReason.FETCH_ERROR
            raise TokenBookUnusable(e.message, token_id=token_id, reason=reason.value) from e

        if not isinstance(response, dict):
            raise TokenBookUnusable(
                "Unexpected book payload",
                token_id=token_id,
                reason=UnusableReason.FETCH_ERROR.value,
            )

        try:
            return OrderBookSnapshot.from_clob(
                token_id,
                response,
                timestamp=format_timestamp(now_utc()),
            )
        except (TypeError, ValueError) as e:
            raise TokenBookUnusable(
                f"Malformed book: {e}",
                token_id=token_id,
                reason=UnusableReason.FETCH_ERROR.value,
            ) from e
