"""
Domain module - Business models

Contains pure business models without external dependencies.
All models are JSON-serializable through to_dict().
"""

from polyarb.domain.models import (
    ArbDirection,
    BookResult,
    LiveMarketEntry,
    Market,
    NearMiss,
    Opportunity,
    OpportunityStatus,
    OrderBookSnapshot,
    PriceLevel,
    PricingResult,
    RiskAssessment,
    RiskLevel,
    ScanCycleStats,
    ScannerState,
    ScanState,
    Token,
    Unusable,
    UnusableReason,
    Usable,
)

__all__ = [
    "ArbDirection",
    "BookResult",
    "LiveMarketEntry",
    "Market",
    "NearMiss",
    "Opportunity",
    "OpportunityStatus",
    "OrderBookSnapshot",
    "PriceLevel",
    "PricingResult",
    "RiskAssessment",
    "RiskLevel",
    "ScanCycleStats",
    "ScannerState",
    "ScanState",
    "Token",
    "Unusable",
    "UnusableReason",
    "Usable",
]
