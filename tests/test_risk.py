"""Tests for risk scoring."""

import pytest

from polyarb.arb.risk import MAX_SCORE, confidence_from_risk, score_risk
from polyarb.domain.models import RiskLevel


class TestScoreRisk:
    """Tests for score_risk."""

    def test_clean_opportunity_scores_base(self):
        risk = score_risk(gross_profit_percent=5.0, liquidity=2000, spread=0.01, days_to_expiry=30)

        assert risk.score == 3
        assert risk.factors == []
        assert risk.level == RiskLevel.LOW

    @pytest.mark.parametrize(
        "kwargs,score,factor",
        [
            ({"liquidity": 499}, 5, "low_liquidity"),
            ({"liquidity": 999}, 4, "moderate_liquidity"),
            ({"spread": 0.06}, 5, "wide_spread"),
            ({"spread": 0.03}, 4, "moderate_spread"),
            ({"days_to_expiry": 0.5}, 5, "expiring_soon"),
            ({"days_to_expiry": -3}, 5, "expiring_soon"),
            ({"days_to_expiry": 6.9}, 4, "short_expiry"),
            ({"gross_profit_percent": 0.9}, 4, "thin_margin"),
        ],
    )
    def test_single_factor(self, kwargs, score, factor):
        args = {"gross_profit_percent": 5.0, "liquidity": 2000, "spread": 0.01, "days_to_expiry": 30}
        args.update(kwargs)

        risk = score_risk(**args)

        assert risk.score == score
        assert risk.factors == [factor]

    def test_threshold_edges_do_not_penalize(self):
        risk = score_risk(gross_profit_percent=1.0, liquidity=1000, spread=0.02, days_to_expiry=7)

        assert risk.score == 3
        assert risk.factors == []

    def test_unknown_expiry_has_no_penalty(self):
        risk = score_risk(gross_profit_percent=5.0, liquidity=2000, spread=0.01, days_to_expiry=None)

        assert risk.score == 3

    def test_worst_case_caps_at_ten(self):
        risk = score_risk(gross_profit_percent=0.1, liquidity=0, spread=0.5, days_to_expiry=-1)

        assert risk.score == MAX_SCORE
        assert risk.factors == ["low_liquidity", "wide_spread", "expiring_soon", "thin_margin"]
        assert risk.level == RiskLevel.EXTREME

    def test_monotonic_in_each_input(self):
        """Worsening any single input never lowers the score."""
        base = {"gross_profit_percent": 5.0, "liquidity": 2000, "spread": 0.01, "days_to_expiry": 30}
        sweeps = {
            "liquidity": [5000, 1000, 999, 500, 499, 0],
            "spread": [0.0, 0.02, 0.021, 0.05, 0.051, 0.5],
            "days_to_expiry": [365, 7, 6.99, 1, 0.99, -10],
            "gross_profit_percent": [50, 1, 0.99, 0.1],
        }
        for name, values in sweeps.items():
            scores = [score_risk(**{**base, name: v}).score for v in values]
            assert scores == sorted(scores), name

    def test_to_dict(self):
        risk = score_risk(gross_profit_percent=0.5, liquidity=2000, spread=0.01, days_to_expiry=30)

        assert risk.to_dict() == {"score": 4, "factors": ["thin_margin"], "level": "MEDIUM"}


class TestConfidence:
    """Tests for confidence_from_risk."""

    @pytest.mark.parametrize("score,expected", [(1, 0.95), (3, 0.95), (4, 0.8), (5, 0.8), (6, 0.6), (10, 0.6)])
    def test_buckets(self, score, expected):
        assert confidence_from_risk(score) == expected
