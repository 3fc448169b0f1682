"""
polyarb Arbitrage Module.

Intra-market (YES + NO) arbitrage detection on Polymarket.

Components:
- pricing: Complementary pair pricing
- risk: Risk scoring (liquidity, spread, expiry, margin)
- builder: Acceptance policy, fees and sizing
- ranked: Capacity-bounded ranked feeds
- engine: Main scan engine
- gate: Per-channel alert cooldown
"""

from polyarb.arb.pricing import analyze_pricing
from polyarb.arb.risk import score_risk
from polyarb.arb.builder import MarketEvaluation, OpportunityBuilder, RejectReason
from polyarb.arb.ranked import RankedList
from polyarb.arb.engine import ScanEngine
from polyarb.arb.gate import AlertGate, NotificationChannel

__all__ = [
    "analyze_pricing",
    "score_risk",
    "MarketEvaluation",
    "OpportunityBuilder",
    "RejectReason",
    "RankedList",
    "ScanEngine",
    "AlertGate",
    "NotificationChannel",
]
