"""Tests for domain models."""

import pytest

from factories import make_market, make_opportunity
from polyarb.core.errors import InvalidTransitionError
from polyarb.domain.models import (
    Market,
    OpportunityStatus,
    OrderBookSnapshot,
    PriceLevel,
    RiskLevel,
    Unusable,
    UnusableReason,
    Usable,
)


class TestOrderBookSnapshot:
    """Tests for OrderBookSnapshot."""

    def test_levels_are_normalized(self):
        book = OrderBookSnapshot(
            token_id="t",
            asks=[PriceLevel(0.60, 10), PriceLevel(0.52, 5), PriceLevel(0.55, 1)],
            bids=[PriceLevel(0.40, 10), PriceLevel(0.50, 5), PriceLevel(0.45, 1)],
        )

        assert book.best_ask == 0.52
        assert book.best_bid == 0.50
        assert [level.price for level in book.asks] == [0.52, 0.55, 0.60]
        assert book.spread == pytest.approx(0.02)
        assert book.midpoint == pytest.approx(0.51)
        assert book.ask_liquidity == 16

    def test_from_clob_parses_strings(self):
        payload = {
            "market": "0xabc",
            "asset_id": "t",
            "asks": [{"price": "0.99", "size": "100"}, {"price": "0.41", "size": "250.5"}],
            "bids": [{"price": "0.01", "size": "1000"}, {"price": "0.39", "size": "20"}],
        }

        book = OrderBookSnapshot.from_clob("t", payload, timestamp="2026-01-01T00:00:00Z")

        assert book.best_ask == 0.41
        assert book.best_bid == 0.39
        assert book.ask_liquidity == pytest.approx(350.5)
        assert book.timestamp == "2026-01-01T00:00:00Z"

    def test_from_clob_drops_invalid_levels(self):
        payload = {
            "asks": [{"price": "1.5", "size": "10"}, {"price": "0.5", "size": "-1"}, {"price": "0.6", "size": "3"}],
            "bids": [{"price": "-0.1", "size": "10"}],
        }

        book = OrderBookSnapshot.from_clob("t", payload)

        assert [level.price for level in book.asks] == [0.6]
        assert book.bids == []
        assert not book.is_complete

    def test_from_clob_rejects_garbage(self):
        with pytest.raises(ValueError):
            OrderBookSnapshot.from_clob("t", {"asks": [{"price": "abc", "size": "1"}]})

    def test_empty_book(self):
        book = OrderBookSnapshot.from_clob("t", {"asks": None, "bids": []})

        assert book.is_empty
        assert book.best_ask is None
        assert book.spread is None


class TestBookResult:
    """Tests for the tagged book result."""

    def test_usable_and_unusable(self):
        assert Usable(OrderBookSnapshot(token_id="t")).is_usable
        unusable = Unusable(token_id="t", reason=UnusableReason.FETCH_ERROR, detail="timeout")
        assert not unusable.is_usable
        assert unusable.reason == "fetch_error"


class TestMarket:
    """Tests for Market."""

    def test_tradable(self):
        assert make_market().is_tradable
        assert not make_market(closed=True).is_tradable
        assert not make_market(active=False).is_tradable
        assert not make_market(accepting_orders=False).is_tradable

    def test_needs_two_tokens(self):
        market = make_market()
        market.tokens = market.tokens[:1]

        assert not market.is_analyzable
        assert market.no_token is None

    def test_round_trip(self):
        market = make_market("m1")

        assert Market.from_dict(market.to_dict()) == market


class TestRiskLevel:
    """Tests for RiskLevel buckets."""

    @pytest.mark.parametrize(
        "score,level",
        [(1, RiskLevel.LOW), (3, RiskLevel.LOW), (4, RiskLevel.MEDIUM), (5, RiskLevel.MEDIUM),
         (6, RiskLevel.HIGH), (7, RiskLevel.HIGH), (8, RiskLevel.EXTREME), (10, RiskLevel.EXTREME)],
    )
    def test_from_score(self, score, level):
        assert RiskLevel.from_score(score) == level


class TestOpportunityStatus:
    """Tests for the opportunity lifecycle."""

    def test_execution_path(self):
        opp = make_opportunity()

        opp.transition(OpportunityStatus.EXECUTING, at="2026-01-01T00:01:00Z")
        opp.transition(OpportunityStatus.EXECUTED, at="2026-01-01T00:02:00Z")

        assert opp.status == OpportunityStatus.EXECUTED
        assert opp.executed_at == "2026-01-01T00:02:00Z"
        assert opp.updated_at == "2026-01-01T00:02:00Z"

    @pytest.mark.parametrize("target", [OpportunityStatus.EXPIRED, OpportunityStatus.MISSED])
    def test_active_can_end(self, target):
        opp = make_opportunity()

        opp.transition(target)

        assert opp.status == target
        assert opp.executed_at is None

    def test_executing_can_be_missed(self):
        opp = make_opportunity()
        opp.transition(OpportunityStatus.EXECUTING)

        opp.transition(OpportunityStatus.MISSED)

        assert opp.status == OpportunityStatus.MISSED

    @pytest.mark.parametrize(
        "path",
        [
            [OpportunityStatus.EXECUTED],
            [OpportunityStatus.EXECUTING, OpportunityStatus.EXPIRED],
            [OpportunityStatus.EXPIRED, OpportunityStatus.ACTIVE],
            [OpportunityStatus.MISSED, OpportunityStatus.EXECUTING],
        ],
    )
    def test_invalid_transitions(self, path):
        opp = make_opportunity()
        for status in path[:-1]:
            opp.transition(status)

        with pytest.raises(InvalidTransitionError) as exc_info:
            opp.transition(path[-1])

        assert exc_info.value.requested == path[-1].value
        assert exc_info.value.code == "INVALID_TRANSITION"

    def test_to_dict(self):
        data = make_opportunity("m1").to_dict()

        assert data["status"] == "active"
        assert data["type"] == "intra_market"
        assert data["market"]["market_id"] == "m1"
        assert data["pricing"]["direction"] == "BUY_BOTH"
        assert data["risk"]["level"] == "LOW"
