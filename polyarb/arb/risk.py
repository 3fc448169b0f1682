"""
Risk scoring for intra-market opportunities.

Scores start at a base of 3 and pick up additive penalties for:
- Liquidity: thin ask-side depth
- Spread: wide bid/ask spreads (execution risk)
- Expiry: markets close to their end date
- Margin: gross edge under 1% that slippage can erase

The total is capped at 10.
"""

from typing import Optional

from polyarb.domain.models import RiskAssessment

BASE_SCORE = 3
MAX_SCORE = 10


def score_risk(
    gross_profit_percent: float,
    liquidity: float,
    spread: float,
    days_to_expiry: Optional[float],
) -> RiskAssessment:
    """
    Score the risk of acting on an opportunity.

    Args:
        gross_profit_percent: Gross edge in percent
        liquidity: Smaller of the two tokens' ask-side depth
        spread: Average bid/ask spread across both tokens
        days_to_expiry: Days until market end; negative once past, None
            if unknown (no expiry penalty)

    Returns:
        RiskAssessment with score in [1, 10] and factors in check order
    """
    factors = []
    score = BASE_SCORE

    if liquidity < 500:
        score += 2
        factors.append("low_liquidity")
    elif liquidity < 1000:
        score += 1
        factors.append("moderate_liquidity")

    if spread > 0.05:
        score += 2
        factors.append("wide_spread")
    elif spread > 0.02:
        score += 1
        factors.append("moderate_spread")

    if days_to_expiry is not None:
        if days_to_expiry < 1:
            score += 2
            factors.append("expiring_soon")
        elif days_to_expiry < 7:
            score += 1
            factors.append("short_expiry")

    if gross_profit_percent < 1:
        score += 1
        factors.append("thin_margin")

    return RiskAssessment(score=min(score, MAX_SCORE), factors=factors)


def confidence_from_risk(score: int) -> float:
    """How confident we are that an opportunity is real, from its risk score."""
    if score <= 3:
        return 0.95
    if score <= 5:
        return 0.8
    return 0.6
