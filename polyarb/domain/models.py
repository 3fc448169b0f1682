"""
Core data models for polyarb.

All models use dataclass and provide to_dict() for JSON serialization.
These models represent the domain objects without external API dependencies.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from polyarb.core.errors import InvalidTransitionError


class ArbDirection(str, Enum):
    """Which side of the complementary pair is mispriced."""
    BUY_BOTH = "BUY_BOTH"      # combined ask < 1.00
    SELL_BOTH = "SELL_BOTH"    # combined bid > 1.00, informational only
    NONE = "NONE"


class RiskLevel(str, Enum):
    """Qualitative bucket for a 1-10 risk score."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"

    @classmethod
    def from_score(cls, score: int) -> "RiskLevel":
        if score <= 3:
            return cls.LOW
        if score <= 5:
            return cls.MEDIUM
        if score <= 7:
            return cls.HIGH
        return cls.EXTREME


class OpportunityStatus(str, Enum):
    """Opportunity lifecycle status."""
    ACTIVE = "active"
    EXECUTING = "executing"
    EXECUTED = "executed"
    EXPIRED = "expired"
    MISSED = "missed"


# Terminal states map to an empty set.
STATUS_TRANSITIONS: dict[OpportunityStatus, frozenset[OpportunityStatus]] = {
    OpportunityStatus.ACTIVE: frozenset({
        OpportunityStatus.EXECUTING,
        OpportunityStatus.EXPIRED,
        OpportunityStatus.MISSED,
    }),
    OpportunityStatus.EXECUTING: frozenset({
        OpportunityStatus.EXECUTED,
        OpportunityStatus.MISSED,
    }),
    OpportunityStatus.EXECUTED: frozenset(),
    OpportunityStatus.EXPIRED: frozenset(),
    OpportunityStatus.MISSED: frozenset(),
}


class UnusableReason(str, Enum):
    """Why an order book could not be used."""
    NO_BOOK = "no_book"                # upstream has no book for the token
    EMPTY_BOOK = "empty_book"          # book exists, both sides empty
    INCOMPLETE_BOOK = "incomplete_book"  # one side empty
    FETCH_ERROR = "fetch_error"        # network/HTTP/parse failure
    MISSING_TOKEN = "missing_token"


class ScanState(str, Enum):
    """Scan engine state."""
    IDLE = "idle"
    SCANNING = "scanning"


@dataclass
class Token:
    """One outcome token of a binary market."""
    token_id: str
    outcome: str = ""
    price: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Market:
    """
    A binary market with two complementary outcome tokens.

    tokens[0] is treated as outcome A (YES) and tokens[1] as outcome B (NO).
    """
    market_id: str
    question: str
    tokens: list[Token] = field(default_factory=list)
    category: str = "unknown"
    end_date: Optional[str] = None
    slug: str = ""
    active: bool = True
    closed: bool = False
    accepting_orders: bool = True
    volume: float = 0.0

    @property
    def is_analyzable(self) -> bool:
        return len(self.tokens) >= 2 and all(t.token_id for t in self.tokens[:2])

    @property
    def is_tradable(self) -> bool:
        return self.active and not self.closed and self.accepting_orders and self.is_analyzable

    @property
    def yes_token(self) -> Optional[Token]:
        return self.tokens[0] if len(self.tokens) > 0 else None

    @property
    def no_token(self) -> Optional[Token]:
        return self.tokens[1] if len(self.tokens) > 1 else None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Market":
        tokens = [Token(**t) for t in data.get("tokens", [])]
        return cls(**{**data, "tokens": tokens})


@dataclass(frozen=True)
class PriceLevel:
    """One price level of an order book."""
    price: float
    size: float


@dataclass
class OrderBookSnapshot:
    """
    Order book for a single token.

    Levels are normalized on construction: asks ascending, bids descending,
    so the first level on each side is the best one whatever order the
    upstream used.
    """
    token_id: str
    asks: list[PriceLevel] = field(default_factory=list)
    bids: list[PriceLevel] = field(default_factory=list)
    timestamp: str = ""

    def __post_init__(self):
        self.asks = sorted(self.asks, key=lambda level: level.price)
        self.bids = sorted(self.bids, key=lambda level: level.price, reverse=True)

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0].price if self.asks else None

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0].price if self.bids else None

    @property
    def is_complete(self) -> bool:
        return self.best_ask is not None and self.best_bid is not None

    @property
    def is_empty(self) -> bool:
        return not self.asks and not self.bids

    @property
    def ask_liquidity(self) -> float:
        """Total size resting on the ask side."""
        return sum(level.size for level in self.asks)

    @property
    def spread(self) -> Optional[float]:
        if not self.is_complete:
            return None
        return self.best_ask - self.best_bid

    @property
    def midpoint(self) -> Optional[float]:
        if not self.is_complete:
            return None
        return (self.best_ask + self.best_bid) / 2

    @classmethod
    def from_clob(
        cls,
        token_id: str,
        payload: dict[str, Any],
        timestamp: str = "",
    ) -> "OrderBookSnapshot":
        """
        Build from a CLOB /book response.

        Prices and sizes arrive as strings. Levels priced outside [0, 1]
        or with negative size are dropped.

        Raises:
            ValueError: If a level cannot be parsed as numbers
        """
        def parse_side(levels: Optional[list[dict[str, Any]]]) -> list[PriceLevel]:
            parsed = []
            for level in levels or []:
                price = float(level.get("price"))
                size = float(level.get("size") or 0)
                if 0 <= price <= 1 and size >= 0:
                    parsed.append(PriceLevel(price=price, size=size))
            return parsed

        return cls(
            token_id=token_id,
            asks=parse_side(payload.get("asks")),
            bids=parse_side(payload.get("bids")),
            timestamp=timestamp,
        )


@dataclass(frozen=True)
class Usable:
    """A book that can be priced."""
    snapshot: OrderBookSnapshot

    @property
    def is_usable(self) -> bool:
        return True


@dataclass(frozen=True)
class Unusable:
    """A token or market that cannot be priced, with the reason."""
    token_id: str
    reason: UnusableReason
    detail: str = ""

    @property
    def is_usable(self) -> bool:
        return False


BookResult = Union[Usable, Unusable]


@dataclass
class PricingResult:
    """Combined pricing of a complementary token pair."""
    yes_best_ask: float
    yes_best_bid: float
    no_best_ask: float
    no_best_bid: float
    combined_ask: float
    combined_bid: float
    buy_both_profit: float
    sell_both_profit: float
    direction: ArbDirection
    gross_profit_percent: float

    @property
    def deviation(self) -> float:
        """Distance of the combined ask from 1.00."""
        return abs(1 - self.combined_ask)

    @property
    def yes_midpoint(self) -> float:
        return (self.yes_best_ask + self.yes_best_bid) / 2

    @property
    def no_midpoint(self) -> float:
        return (self.no_best_ask + self.no_best_bid) / 2

    @property
    def average_spread(self) -> float:
        return ((self.yes_best_ask - self.yes_best_bid) + (self.no_best_ask - self.no_best_bid)) / 2

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["direction"] = self.direction.value
        result["deviation"] = self.deviation
        return result


@dataclass
class RiskAssessment:
    """Bounded risk score with the factors that raised it."""
    score: int
    factors: list[str] = field(default_factory=list)

    @property
    def level(self) -> RiskLevel:
        return RiskLevel.from_score(self.score)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "factors": list(self.factors),
            "level": self.level.value,
        }


@dataclass
class Opportunity:
    """
    An intra-market arbitrage opportunity.

    Identity is the market id: a later scan of the same market replaces
    the record rather than adding a second one.
    """
    id: str
    market: Market
    pricing: PricingResult
    risk: RiskAssessment

    # Profit analysis, absolute figures per $1 position
    gross_profit_percent: float
    gross_profit_absolute: float
    estimated_fees: float
    estimated_gas: float
    net_profit_percent: float
    net_profit_absolute: float
    breakeven: float

    confidence_score: float
    liquidity: float
    recommended_size: float
    max_size: float

    discovered_at: str
    updated_at: str
    status: OpportunityStatus = OpportunityStatus.ACTIVE
    type: str = "intra_market"
    expires_at: Optional[str] = None
    executed_at: Optional[str] = None

    @property
    def key(self) -> str:
        return self.market.market_id

    @property
    def direction(self) -> ArbDirection:
        return self.pricing.direction

    @property
    def risk_score(self) -> int:
        return self.risk.score

    @property
    def risk_level(self) -> RiskLevel:
        return self.risk.level

    def can_transition(self, to: OpportunityStatus) -> bool:
        return to in STATUS_TRANSITIONS[self.status]

    def transition(self, to: OpportunityStatus, at: str = "") -> None:
        """
        Move to a new lifecycle status.

        Raises:
            InvalidTransitionError: If the move is not allowed from the
                current status
        """
        if not self.can_transition(to):
            raise InvalidTransitionError(
                f"Cannot move opportunity {self.id} from {self.status.value} to {to.value}",
                current=self.status.value,
                requested=to.value,
            )
        self.status = to
        if at:
            self.updated_at = at
        if to == OpportunityStatus.EXECUTED:
            self.executed_at = at or self.updated_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "status": self.status.value,
            "market": self.market.to_dict(),
            "pricing": self.pricing.to_dict(),
            "risk": self.risk.to_dict(),
            "gross_profit_percent": self.gross_profit_percent,
            "gross_profit_absolute": self.gross_profit_absolute,
            "estimated_fees": self.estimated_fees,
            "estimated_gas": self.estimated_gas,
            "net_profit_percent": self.net_profit_percent,
            "net_profit_absolute": self.net_profit_absolute,
            "breakeven": self.breakeven,
            "confidence_score": self.confidence_score,
            "liquidity": self.liquidity,
            "recommended_size": self.recommended_size,
            "max_size": self.max_size,
            "discovered_at": self.discovered_at,
            "updated_at": self.updated_at,
            "expires_at": self.expires_at,
            "executed_at": self.executed_at,
        }


@dataclass
class NearMiss:
    """A market whose combined ask sits close to 1.00 without a usable edge."""
    market_id: str
    question: str
    slug: str
    yes_ask: float
    no_ask: float
    yes_bid: float
    no_bid: float
    combined_ask: float
    combined_bid: float
    deviation: float
    direction: str          # UNDERPRICED / OVERPRICED
    volume: float = 0.0
    timestamp: str = ""

    @property
    def deviation_percent(self) -> float:
        return self.deviation * 100

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["deviation_percent"] = round(self.deviation_percent, 2)
        return result


@dataclass
class LiveMarketEntry:
    """Display record for any market whose books could be priced."""
    market_id: str
    question: str
    slug: str
    category: str
    yes_price: float
    no_price: float
    yes_bid: float
    yes_ask: float
    no_bid: float
    no_ask: float
    spread: float
    liquidity: float
    volume: float = 0.0
    end_date: Optional[str] = None
    timestamp: str = ""

    @property
    def spread_percent(self) -> float:
        return self.spread * 100

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["spread_percent"] = round(self.spread_percent, 2)
        return result


@dataclass
class ScanCycleStats:
    """Counters kept across scan cycles."""
    total_scans: int = 0
    markets_scanned: int = 0
    total_opportunities_found: int = 0
    active_opportunities: int = 0
    best_profit: float = 0.0
    last_scan_at: str = ""
    last_scan_duration_ms: float = 0.0
    started_at: str = ""
    uptime_seconds: float = 0.0
    dropped_scans: int = 0
    catalog_failures: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ScannerState:
    """Read-only view handed to display and alerting collaborators."""
    opportunities: list[Opportunity]
    near_misses: list[NearMiss]
    live_markets: list[LiveMarketEntry]
    stats: ScanCycleStats
    scanning: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "opportunities": [o.to_dict() for o in self.opportunities],
            "near_misses": [n.to_dict() for n in self.near_misses],
            "live_markets": [m.to_dict() for m in self.live_markets],
            "stats": self.stats.to_dict(),
            "scanning": self.scanning,
        }
