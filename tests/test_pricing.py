"""Tests for complementary pair pricing."""

import itertools

import pytest

from factories import make_book, usable
from polyarb.arb.pricing import analyze_pricing
from polyarb.domain.models import ArbDirection, PricingResult, Unusable, UnusableReason


class TestAnalyzePricing:
    """Tests for analyze_pricing."""

    def test_buy_both_example(self):
        """Combined ask of 0.95 leaves a 5.263% edge."""
        result = analyze_pricing(usable("y", 0.40, 0.38), usable("n", 0.55, 0.53))

        assert isinstance(result, PricingResult)
        assert result.combined_ask == pytest.approx(0.95)
        assert result.buy_both_profit == pytest.approx(0.05)
        assert result.direction == ArbDirection.BUY_BOTH
        assert result.gross_profit_percent == pytest.approx(5.263, abs=1e-3)

    def test_sell_both_example(self):
        """Combined bid of 1.16 reports a 16% sell-both edge."""
        result = analyze_pricing(usable("y", 0.60, 0.58), usable("n", 0.60, 0.58))

        assert result.combined_ask == pytest.approx(1.20)
        assert result.combined_bid == pytest.approx(1.16)
        assert result.buy_both_profit == pytest.approx(-0.20)
        assert result.sell_both_profit == pytest.approx(0.16)
        assert result.direction == ArbDirection.SELL_BOTH
        assert result.gross_profit_percent == pytest.approx(16.0)

    def test_fair_market_has_no_direction(self):
        result = analyze_pricing(usable("y", 0.50, 0.49), usable("n", 0.50, 0.49))

        assert result.direction == ArbDirection.NONE
        assert result.gross_profit_percent == 0.0
        assert result.deviation == 0.0

    def test_buy_both_takes_precedence(self):
        """Crossed books can show both edges; only BUY_BOTH is reported."""
        result = analyze_pricing(usable("y", 0.40, 0.60), usable("n", 0.40, 0.60))

        assert result.buy_both_profit > 0
        assert result.sell_both_profit > 0
        assert result.direction == ArbDirection.BUY_BOTH

    def test_combined_ask_not_below_combined_bid(self):
        """Holds for every quadruple with bid <= ask on each token."""
        prices = [0.01, 0.2, 0.45, 0.5, 0.55, 0.8, 0.99]
        for yes_bid, yes_ask, no_bid, no_ask in itertools.product(prices, repeat=4):
            if yes_bid > yes_ask or no_bid > no_ask:
                continue
            result = analyze_pricing(usable("y", yes_ask, yes_bid), usable("n", no_ask, no_bid))
            assert result.combined_ask >= result.combined_bid

    def test_derived_figures(self):
        result = analyze_pricing(usable("y", 0.40, 0.38), usable("n", 0.56, 0.50))

        assert result.yes_midpoint == pytest.approx(0.39)
        assert result.no_midpoint == pytest.approx(0.53)
        assert result.average_spread == pytest.approx(0.04)
        assert result.deviation == pytest.approx(0.04)

    def test_accepts_raw_snapshots(self):
        yes = make_book("y", asks=[(0.40, 10)], bids=[(0.38, 10)])
        no = make_book("n", asks=[(0.55, 10)], bids=[(0.53, 10)])

        result = analyze_pricing(yes, no)

        assert result.direction == ArbDirection.BUY_BOTH

    def test_uses_best_levels_of_unsorted_books(self):
        yes = make_book("y", asks=[(0.48, 5), (0.40, 5)], bids=[(0.30, 5), (0.38, 5)])
        no = make_book("n", asks=[(0.55, 5)], bids=[(0.53, 5)])

        result = analyze_pricing(yes, no)

        assert result.yes_best_ask == 0.40
        assert result.yes_best_bid == 0.38


class TestUnusableBooks:
    """Tests for books that cannot be priced."""

    def test_unusable_passes_through(self):
        missing = Unusable(token_id="y", reason=UnusableReason.NO_BOOK)

        result = analyze_pricing(missing, usable("n", 0.55, 0.53))

        assert result is missing

    def test_empty_book(self):
        result = analyze_pricing(make_book("y"), usable("n", 0.55, 0.53))

        assert isinstance(result, Unusable)
        assert result.reason == UnusableReason.EMPTY_BOOK
        assert result.token_id == "y"

    def test_one_sided_book(self):
        no = make_book("n", asks=[(0.55, 10)])

        result = analyze_pricing(usable("y", 0.40, 0.38), no)

        assert isinstance(result, Unusable)
        assert result.reason == UnusableReason.INCOMPLETE_BOOK
        assert result.token_id == "n"
