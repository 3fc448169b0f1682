"""
Scan Engine.

Main orchestrator for intra-market arbitrage detection on Polymarket.

Flow:
1. Catalog: Fetch active markets, filter by tradability and category
2. Books: Fetch YES/NO order books in concurrent batches
3. Evaluate: Run the opportunity builder per market
4. Track: Update live-market and near-miss feeds
5. Rank: Order opportunities by net profit
6. Emit: Notify opportunity and cycle listeners
"""

import asyncio
import inspect
import time
from collections import OrderedDict
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from polyarb.arb.builder import MarketEvaluation, OpportunityBuilder
from polyarb.arb.ranked import RankedList
from polyarb.core.config import ScannerConfig, load_scanner_config
from polyarb.core.errors import PolyArbError
from polyarb.core.logging import LoggerMixin
from polyarb.core.timeutil import format_timestamp, now_utc
from polyarb.domain.models import (
    BookResult,
    LiveMarketEntry,
    Market,
    NearMiss,
    Opportunity,
    ScanCycleStats,
    ScannerState,
    ScanState,
    Unusable,
    UnusableReason,
)
from polyarb.providers.base import MarketDataSource

OpportunityListener = Callable[[Opportunity], Any]
CycleListener = Callable[[list[Opportunity]], Any]


class ScanEngine(LoggerMixin):
    """
    Polymarket intra-market arbitrage scanner.

    Owns the opportunity set, the near-miss and live-market feeds and the
    cycle statistics. Several engines can coexist; nothing is global.
    """

    def __init__(
        self,
        provider: MarketDataSource,
        config: Optional[ScannerConfig] = None,
        clock: Callable[[], datetime] = now_utc,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize scan engine.

        Args:
            provider: Market data source (catalog + order books)
            config: Scanner config (or load from yaml)
            clock: Wall clock, injectable for tests
            sleep: Async sleep used between batches
        """
        self.provider = provider
        self.config = config or _default_config()
        self.builder = OpportunityBuilder(self.config)

        self._clock = clock
        self._sleep = sleep
        self._state = ScanState.IDLE

        # Discovery order, keyed by market id
        self._opportunities: OrderedDict[str, Opportunity] = OrderedDict()
        self._near_misses: RankedList[NearMiss] = RankedList(
            capacity=self.config.max_near_misses,
            rank=lambda n: n.deviation,
            identity=lambda n: n.market_id,
        )
        self._live_markets: RankedList[LiveMarketEntry] = RankedList(
            capacity=self.config.max_live_markets,
            rank=lambda m: m.liquidity,
            identity=lambda m: m.market_id,
            descending=True,
        )

        self._started = clock()
        self.stats = ScanCycleStats(started_at=format_timestamp(self._started))

        self._opportunity_listeners: list[OpportunityListener] = []
        self._cycle_listeners: list[CycleListener] = []

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def scanning(self) -> bool:
        return self._state == ScanState.SCANNING

    def on_opportunity(self, callback: OpportunityListener) -> None:
        """Register a listener called once per opportunity accepted in a cycle."""
        self._opportunity_listeners.append(callback)

    def on_cycle(self, callback: CycleListener) -> None:
        """Register a listener called with the ranked opportunities after each cycle."""
        self._cycle_listeners.append(callback)

    async def run_scan(self) -> list[Opportunity]:
        """
        Run one scan cycle.

        A call made while a cycle is in flight is dropped, not queued.

        Returns:
            Opportunities accepted this cycle, in rank order
        """
        if self.scanning:
            self.stats.dropped_scans += 1
            self.logger.warning("Scan already in progress, dropping request")
            return []

        self._state = ScanState.SCANNING
        started = time.monotonic()
        try:
            return await self._run_cycle()
        finally:
            self.stats.last_scan_duration_ms = (time.monotonic() - started) * 1000
            self._state = ScanState.IDLE

    async def _run_cycle(self) -> list[Opportunity]:
        self.logger.info("Starting arbitrage scan...")
        now = self._clock()

        markets = await self._fetch_catalog()
        self.logger.info(f"Scanning {len(markets)} markets")

        accepted: OrderedDict[str, Opportunity] = OrderedDict()
        batch_size = self.config.batch_size

        for start in range(0, len(markets), batch_size):
            if start > 0 and self.config.batch_delay_seconds > 0:
                await self._sleep(self.config.batch_delay_seconds)

            batch = markets[start:start + batch_size]
            evaluations = await asyncio.gather(
                *(self._evaluate_market(market, now) for market in batch)
            )
            for evaluation in evaluations:
                self._apply(evaluation, now, accepted)

        ranked = self.ranked_opportunities()
        cycle = _rank(list(accepted.values()))

        self.stats.total_scans += 1
        self.stats.markets_scanned = len(markets)
        self.stats.active_opportunities = len(self._opportunities)
        self.stats.best_profit = ranked[0].net_profit_percent if ranked else 0.0
        self.stats.last_scan_at = format_timestamp(now)
        self.stats.uptime_seconds = (now - self._started).total_seconds()

        self.logger.info(
            f"Scan complete: {len(markets)} markets, {len(cycle)} opportunities, "
            f"{len(self._near_misses)} near-misses"
        )

        await self._emit(cycle)
        return cycle

    async def _fetch_catalog(self) -> list[Market]:
        try:
            catalog = await self.provider.list_active_markets()
        except PolyArbError as e:
            self.logger.warning(f"Market catalog unavailable: {e.message}")
            self.stats.catalog_failures += 1
            self.stats.last_error = e.message
            return []

        markets = [
            m for m in catalog
            if m.is_tradable and self.config.allows_category(m.category)
        ]
        if len(markets) < len(catalog):
            self.logger.debug(f"Filtered catalog: {len(catalog)} -> {len(markets)} markets")

        if self.config.max_markets_per_scan is not None:
            markets = markets[: self.config.max_markets_per_scan]
        return markets

    async def _evaluate_market(self, market: Market, now: datetime) -> MarketEvaluation:
        yes_book, no_book = await asyncio.gather(
            self._fetch_book(market, 0),
            self._fetch_book(market, 1),
        )
        return self.builder.evaluate(market, yes_book, no_book, now)

    async def _fetch_book(self, market: Market, index: int) -> BookResult:
        if len(market.tokens) <= index or not market.tokens[index].token_id:
            return Unusable(token_id="", reason=UnusableReason.MISSING_TOKEN)

        token_id = market.tokens[index].token_id
        try:
            return await self.provider.get_order_book(token_id)
        except Exception as e:
            self.logger.warning(f"Book fetch for {token_id} failed: {e}")
            return Unusable(token_id=token_id, reason=UnusableReason.FETCH_ERROR, detail=str(e))

    def _apply(
        self,
        evaluation: MarketEvaluation,
        now: datetime,
        accepted: "OrderedDict[str, Opportunity]",
    ) -> None:
        pricing = evaluation.pricing
        if pricing is None:
            return

        market = evaluation.market
        timestamp = format_timestamp(now)

        self._live_markets.upsert(LiveMarketEntry(
            market_id=market.market_id,
            question=market.question,
            slug=market.slug,
            category=market.category,
            yes_price=pricing.yes_midpoint,
            no_price=pricing.no_midpoint,
            yes_bid=pricing.yes_best_bid,
            yes_ask=pricing.yes_best_ask,
            no_bid=pricing.no_best_bid,
            no_ask=pricing.no_best_ask,
            spread=pricing.average_spread,
            liquidity=evaluation.total_liquidity,
            volume=market.volume,
            end_date=market.end_date,
            timestamp=timestamp,
        ))

        opportunity = evaluation.opportunity
        if opportunity is None:
            if 0 < pricing.deviation <= self.config.near_miss_threshold:
                self._near_misses.upsert(NearMiss(
                    market_id=market.market_id,
                    question=market.question,
                    slug=market.slug,
                    yes_ask=pricing.yes_best_ask,
                    no_ask=pricing.no_best_ask,
                    yes_bid=pricing.yes_best_bid,
                    no_bid=pricing.no_best_bid,
                    combined_ask=pricing.combined_ask,
                    combined_bid=pricing.combined_bid,
                    deviation=pricing.deviation,
                    direction="UNDERPRICED" if pricing.combined_ask < 1 else "OVERPRICED",
                    volume=market.volume,
                    timestamp=timestamp,
                ))
            return

        accepted[opportunity.key] = self._upsert_opportunity(opportunity)

    def _upsert_opportunity(self, opportunity: Opportunity) -> Opportunity:
        """Insert or replace by market id, keeping the first id and discovery time."""
        existing = self._opportunities.get(opportunity.key)
        if existing is not None:
            opportunity.id = existing.id
            opportunity.discovered_at = existing.discovered_at
            self._opportunities[opportunity.key] = opportunity
            return opportunity

        self._opportunities[opportunity.key] = opportunity
        self.stats.total_opportunities_found += 1
        while len(self._opportunities) > self.config.max_opportunities:
            evicted_key, _ = self._opportunities.popitem(last=False)
            self.logger.debug(f"Evicted oldest opportunity for market {evicted_key}")
        return opportunity

    async def _emit(self, cycle: list[Opportunity]) -> None:
        for opportunity in cycle:
            for callback in self._opportunity_listeners:
                await self._call_listener(callback, opportunity)
        for callback in self._cycle_listeners:
            await self._call_listener(callback, cycle)

    async def _call_listener(self, callback: Callable[[Any], Any], payload: Any) -> None:
        try:
            result = callback(payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.logger.error(f"Listener {getattr(callback, '__name__', callback)} failed: {e}")

    def ranked_opportunities(self) -> list[Opportunity]:
        """All tracked opportunities by net profit, first discovered winning ties."""
        return _rank(list(self._opportunities.values()))

    def current_state(self, top: Optional[int] = None) -> ScannerState:
        """
        Snapshot of everything the engine tracks.

        Args:
            top: Limit the opportunity list to the best N

        Returns:
            ScannerState with copies of the engine's collections
        """
        ranked = self.ranked_opportunities()
        if top is not None:
            ranked = ranked[:top]
        stats = ScanCycleStats(**self.stats.to_dict())
        stats.uptime_seconds = (self._clock() - self._started).total_seconds()
        return ScannerState(
            opportunities=ranked,
            near_misses=self._near_misses.items(),
            live_markets=self._live_markets.items(),
            stats=stats,
            scanning=self.scanning,
        )

    def clear(self) -> None:
        """Forget all tracked opportunities and feeds."""
        self._opportunities.clear()
        self._near_misses.clear()
        self._live_markets.clear()
        self.stats.active_opportunities = 0
        self.logger.info("Cleared scanner state")

    async def aclose(self) -> None:
        """Release the provider's resources, if it holds any."""
        close = getattr(self.provider, "aclose", None)
        if close is not None:
            await close()


def _default_config() -> ScannerConfig:
    """Scanner config from config/config.yaml, or env and built-in defaults without it."""
    try:
        return load_scanner_config()
    except FileNotFoundError:
        return load_scanner_config({})


def _rank(opportunities: list[Opportunity]) -> list[Opportunity]:
    # sorted() is stable, so input order breaks ties
    return sorted(opportunities, key=lambda o: o.net_profit_percent, reverse=True)
