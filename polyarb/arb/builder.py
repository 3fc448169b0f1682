"""
Intra-Market Opportunity Builder.

Turns one market's pair of order books into an Opportunity, or a reason
why not.

Core Logic:
1. Price the YES/NO pair (combined ask / combined bid)
2. Require an edge of at least min_profit_percent
3. Require min_liquidity of ask-side depth on both tokens, if configured
4. Score risk and reject anything above max_risk_score
5. Net out fixed fee and gas costs, size against available depth
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from polyarb.arb.pricing import BookLike, analyze_pricing
from polyarb.arb.risk import confidence_from_risk, score_risk
from polyarb.core.config import ScannerConfig
from polyarb.core.logging import LoggerMixin
from polyarb.core.timeutil import days_until, format_timestamp, now_utc
from polyarb.domain.models import (
    ArbDirection,
    Market,
    Opportunity,
    OpportunityStatus,
    OrderBookSnapshot,
    PricingResult,
    Unusable,
    Usable,
)

# Fixed cost policy, per $1 of notional.
TAKER_FEE = 0.01
GAS_COST = 0.002

RECOMMENDED_SIZE_FRACTION = 0.10
RECOMMENDED_SIZE_CAP = 1000.0
MAX_SIZE_FRACTION = 0.50


class RejectReason(str, Enum):
    """Why a market did not become an opportunity."""
    UNUSABLE_BOOK = "unusable_book"
    NO_EDGE = "no_edge"
    BELOW_MIN_PROFIT = "below_min_profit"
    BELOW_MIN_LIQUIDITY = "below_min_liquidity"
    RISK_TOO_HIGH = "risk_too_high"
    ERROR = "error"


@dataclass
class MarketEvaluation:
    """
    Outcome of evaluating one market.

    pricing and the liquidity figures are filled whenever both books were
    usable, even if the market was rejected, so the caller can track
    near-misses and liquidity rankings.
    """
    market: Market
    pricing: Optional[PricingResult] = None
    yes_liquidity: float = 0.0
    no_liquidity: float = 0.0
    opportunity: Optional[Opportunity] = None
    reject_reason: Optional[RejectReason] = None
    unusable: Optional[Unusable] = None

    @property
    def is_analyzable(self) -> bool:
        return self.pricing is not None

    @property
    def accepted(self) -> bool:
        return self.opportunity is not None

    @property
    def min_liquidity(self) -> float:
        return min(self.yes_liquidity, self.no_liquidity)

    @property
    def total_liquidity(self) -> float:
        return self.yes_liquidity + self.no_liquidity


class OpportunityBuilder(LoggerMixin):
    """
    Applies the acceptance policy to a priced market.

    This is the one place acceptance thresholds are read; everything that
    can make a market fail is reported as a RejectReason, never raised.
    """

    def __init__(self, config: ScannerConfig):
        """
        Initialize builder.

        Args:
            config: Scanner thresholds
        """
        self.config = config

    def build(
        self,
        market: Market,
        yes_book: BookLike,
        no_book: BookLike,
        now: Optional[datetime] = None,
    ) -> Optional[Opportunity]:
        """Return the accepted Opportunity, or None."""
        return self.evaluate(market, yes_book, no_book, now).opportunity

    def evaluate(
        self,
        market: Market,
        yes_book: BookLike,
        no_book: BookLike,
        now: Optional[datetime] = None,
    ) -> MarketEvaluation:
        """
        Evaluate a market for intra-market arbitrage.

        Args:
            market: Market metadata
            yes_book: Fetch result for outcome A
            no_book: Fetch result for outcome B
            now: Evaluation time (defaults to current UTC time)

        Returns:
            MarketEvaluation; exceptions are converted to RejectReason.ERROR
        """
        evaluation = MarketEvaluation(market=market)
        try:
            self._evaluate(evaluation, yes_book, no_book, now or now_utc())
        except Exception as e:
            self.logger.debug(f"Market {market.market_id}: evaluation failed: {e}")
            evaluation.opportunity = None
            evaluation.reject_reason = RejectReason.ERROR
        return evaluation

    def _evaluate(
        self,
        evaluation: MarketEvaluation,
        yes_book: BookLike,
        no_book: BookLike,
        now: datetime,
    ) -> None:
        market = evaluation.market

        # 1. Price the pair
        pricing = analyze_pricing(yes_book, no_book)
        if isinstance(pricing, Unusable):
            evaluation.unusable = pricing
            evaluation.reject_reason = RejectReason.UNUSABLE_BOOK
            return

        evaluation.pricing = pricing
        evaluation.yes_liquidity = _ask_liquidity(yes_book)
        evaluation.no_liquidity = _ask_liquidity(no_book)

        # 2. Edge check (equality passes)
        if pricing.direction == ArbDirection.NONE:
            evaluation.reject_reason = RejectReason.NO_EDGE
            return
        if pricing.gross_profit_percent < self.config.min_profit_percent:
            evaluation.reject_reason = RejectReason.BELOW_MIN_PROFIT
            return

        # 3. Liquidity
        min_liquidity = evaluation.min_liquidity
        if self.config.min_liquidity is not None and min_liquidity < self.config.min_liquidity:
            evaluation.reject_reason = RejectReason.BELOW_MIN_LIQUIDITY
            return

        # 4. Risk
        risk = score_risk(
            pricing.gross_profit_percent,
            min_liquidity,
            pricing.average_spread,
            days_until(market.end_date, now),
        )
        if risk.score > self.config.max_risk_score:
            self.logger.debug(
                f"Market {market.market_id}: risk {risk.score} > {self.config.max_risk_score} "
                f"({', '.join(risk.factors)})"
            )
            evaluation.reject_reason = RejectReason.RISK_TOO_HIGH
            return

        # 5. Costs
        costs = TAKER_FEE + GAS_COST
        if pricing.direction == ArbDirection.BUY_BOTH:
            gross_profit_absolute = pricing.buy_both_profit
        else:
            gross_profit_absolute = pricing.sell_both_profit

        timestamp = format_timestamp(now)

        evaluation.opportunity = Opportunity(
            id=str(uuid.uuid4()),
            market=market,
            pricing=pricing,
            risk=risk,
            gross_profit_percent=pricing.gross_profit_percent,
            gross_profit_absolute=gross_profit_absolute,
            estimated_fees=TAKER_FEE,
            estimated_gas=GAS_COST,
            net_profit_percent=pricing.gross_profit_percent - costs * 100,
            net_profit_absolute=gross_profit_absolute - costs,
            breakeven=costs,
            confidence_score=confidence_from_risk(risk.score),
            liquidity=min_liquidity,
            recommended_size=min(min_liquidity * RECOMMENDED_SIZE_FRACTION, RECOMMENDED_SIZE_CAP),
            max_size=min_liquidity * MAX_SIZE_FRACTION,
            discovered_at=timestamp,
            updated_at=timestamp,
            status=OpportunityStatus.ACTIVE,
        )

        self.logger.info(
            f"Opportunity detected: market={market.market_id}, "
            f"direction={pricing.direction.value}, "
            f"net={evaluation.opportunity.net_profit_percent:.2f}%, risk={risk.score}"
        )


def _ask_liquidity(book: BookLike) -> float:
    if isinstance(book, OrderBookSnapshot):
        return book.ask_liquidity
    if isinstance(book, Usable):
        return book.snapshot.ask_liquidity
    return 0.0
