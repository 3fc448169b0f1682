"""
Complementary pair pricing.

A binary market's YES and NO tokens should together cost exactly $1.00.
When the two best asks sum below 1.00, buying both locks in the difference;
when the two best bids sum above 1.00, selling both would. Only one
direction is ever reported, BUY_BOTH taking precedence.
"""

from typing import Union

from polyarb.domain.models import (
    ArbDirection,
    BookResult,
    OrderBookSnapshot,
    PricingResult,
    Unusable,
    UnusableReason,
    Usable,
)

BookLike = Union[BookResult, OrderBookSnapshot]


def _as_snapshot(book: BookLike) -> Union[OrderBookSnapshot, Unusable]:
    if isinstance(book, Unusable):
        return book
    snapshot = book.snapshot if isinstance(book, Usable) else book
    if not snapshot.is_complete:
        reason = UnusableReason.EMPTY_BOOK if snapshot.is_empty else UnusableReason.INCOMPLETE_BOOK
        return Unusable(token_id=snapshot.token_id, reason=reason)
    return snapshot


def analyze_pricing(yes_book: BookLike, no_book: BookLike) -> Union[PricingResult, Unusable]:
    """
    Price a YES/NO token pair.

    Args:
        yes_book: Book (or fetch result) for outcome A
        no_book: Book (or fetch result) for outcome B

    Returns:
        PricingResult, or the first Unusable if either side lacks a best
        bid or best ask
    """
    yes = _as_snapshot(yes_book)
    if isinstance(yes, Unusable):
        return yes
    no = _as_snapshot(no_book)
    if isinstance(no, Unusable):
        return no

    combined_ask = yes.best_ask + no.best_ask
    combined_bid = yes.best_bid + no.best_bid
    buy_both_profit = 1 - combined_ask
    sell_both_profit = combined_bid - 1

    if buy_both_profit > 0:
        direction = ArbDirection.BUY_BOTH
        gross_profit_percent = buy_both_profit / combined_ask * 100
    elif sell_both_profit > 0:
        direction = ArbDirection.SELL_BOTH
        gross_profit_percent = sell_both_profit * 100
    else:
        direction = ArbDirection.NONE
        gross_profit_percent = 0.0

    return PricingResult(
        yes_best_ask=yes.best_ask,
        yes_best_bid=yes.best_bid,
        no_best_ask=no.best_ask,
        no_best_bid=no.best_bid,
        combined_ask=combined_ask,
        combined_bid=combined_bid,
        buy_both_profit=buy_both_profit,
        sell_both_profit=sell_both_profit,
        direction=direction,
        gross_profit_percent=gross_profit_percent,
    )
