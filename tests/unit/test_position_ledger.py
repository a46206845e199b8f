"""
Tests for FIFO lot matching in the position ledger.

Source: reconstruction/pipeline/position_ledger.py
"""

import pytest
from datetime import datetime
from decimal import Decimal

from reconstruction.models.trade_models import (
    ClosingType,
    Direction,
    LeftoverOpen,
    MatchedPair,
    OptionType,
    Side,
    Strategy,
    UnmatchedClose,
)
from reconstruction.pipeline.order_grouper import build_strategy_index, group
from reconstruction.pipeline.position_ledger import PositionLedger, sort_chronologically, split_amount
from tests.conftest import make_leg


def _open(leg_id, day, quantity, amount, side=Side.SELL):
    return make_leg(
        leg_id=leg_id, quantity=quantity, amount=amount, side=side,
        timestamp=datetime(2025, 3, day, 10, 0),
    )


def _close(leg_id, day, quantity, amount, side=Side.BUY, closing_type=None):
    return make_leg(
        leg_id=leg_id, direction=Direction.CLOSE, side=side,
        quantity=quantity, amount=amount,
        timestamp=datetime(2025, 3, day, 15, 0), closing_type=closing_type,
    )


def _of(events, kind):
    return [e for e in events if isinstance(e, kind)]


# ---------------------------------------------------------------------------
# Amount splitting
# ---------------------------------------------------------------------------

class TestSplitAmount:
    def test_proportional(self):
        assert split_amount(Decimal("-500"), 5, 3) == Decimal("-300.00")

    def test_consuming_everything_returns_remainder(self):
        assert split_amount(Decimal("-100.01"), 3, 3) == Decimal("-100.01")

    def test_rounds_half_up_to_cents(self):
        assert split_amount(Decimal("100"), 3, 1) == Decimal("33.33")
        assert split_amount(Decimal("0.05"), 2, 1) == Decimal("0.03")


# ---------------------------------------------------------------------------
# FIFO matching
# ---------------------------------------------------------------------------

class TestFifo:
    def test_full_close(self):
        events = PositionLedger().process([
            _open("o1", 3, 1, "150"),
            _close("c1", 10, 1, "-40"),
        ])
        [pair] = events
        assert isinstance(pair, MatchedPair)
        assert pair.quantity == 1
        assert pair.open_portion.amount == Decimal("150")
        assert pair.close_portion.amount == Decimal("-40")
        assert pair.strategy is Strategy.SHORT_PUT

    def test_oldest_lot_consumed_first(self):
        events = PositionLedger().process([
            _open("early", 3, 1, "150"),
            _open("late", 4, 1, "120"),
            _close("c1", 10, 1, "-40"),
        ])
        [pair] = _of(events, MatchedPair)
        [left] = _of(events, LeftoverOpen)
        assert pair.open_portion.leg.leg_id == "early"
        assert left.open_portion.leg.leg_id == "late"

    def test_close_spans_lots(self):
        events = PositionLedger().process([
            _open("a", 3, 2, "300"),
            _open("b", 4, 2, "200"),
            _close("c", 10, 3, "-90"),
        ])
        pairs = _of(events, MatchedPair)
        assert [(p.open_portion.leg.leg_id, p.quantity) for p in pairs] == [("a", 2), ("b", 1)]
        assert [p.close_portion.amount for p in pairs] == [Decimal("-60.00"), Decimal("-30.00")]
        [left] = _of(events, LeftoverOpen)
        assert left.quantity == 1
        assert left.open_portion.amount == Decimal("100.00")

    def test_partial_fill_split(self):
        events = PositionLedger().process([
            _open("o", 3, 5, "-500", side=Side.BUY),
            _close("c", 10, 3, "420", side=Side.SELL),
        ])
        [pair] = _of(events, MatchedPair)
        [left] = _of(events, LeftoverOpen)
        assert pair.quantity == 3
        assert pair.open_portion.amount == Decimal("-300.00")
        assert left.quantity == 2
        assert left.open_portion.amount == Decimal("-200.00")

    def test_input_order_does_not_matter(self):
        legs = [_open("o", 3, 2, "200"), _close("c", 10, 1, "-50")]
        forward = PositionLedger().process(legs)
        backward = PositionLedger().process(list(reversed(legs)))
        assert forward == backward
        assert len(_of(forward, UnmatchedClose)) == 0


# ---------------------------------------------------------------------------
# Conservation
# ---------------------------------------------------------------------------

class TestConservation:
    @pytest.mark.parametrize("closes", [[1], [2, 1], [3, 4], [5, 5], [7]])
    def test_quantities_and_amounts_add_up(self, closes):
        legs = [_open("o1", 1, 3, "-301", side=Side.BUY), _open("o2", 2, 4, "-333", side=Side.BUY)]
        legs += [_close(f"c{i}", 5 + i, q, "97", side=Side.SELL) for i, q in enumerate(closes)]

        events = PositionLedger().process(legs)

        pairs = _of(events, MatchedPair)
        leftovers = _of(events, LeftoverOpen)
        unmatched = _of(events, UnmatchedClose)

        opened = 7
        closed = sum(closes)
        assert sum(p.quantity for p in pairs) + sum(e.quantity for e in leftovers) == opened
        assert sum(p.quantity for p in pairs) + sum(e.quantity for e in unmatched) == closed

        open_cash = sum(p.open_portion.amount for p in pairs) + sum(
            e.open_portion.amount for e in leftovers)
        close_cash = sum(p.close_portion.amount for p in pairs) + sum(
            e.close_portion.amount for e in unmatched)
        assert open_cash == Decimal("-634")
        assert close_cash == Decimal("97") * len(closes)


# ---------------------------------------------------------------------------
# Closes with no lot
# ---------------------------------------------------------------------------

class TestUnmatched:
    def test_close_without_open(self):
        events = PositionLedger().process([_close("c", 10, 2, "-80")])
        [event] = events
        assert isinstance(event, UnmatchedClose)
        assert event.quantity == 2
        assert event.close_portion.amount == Decimal("-80")

    def test_over_close_remainder_is_unmatched(self):
        events = PositionLedger().process([
            _open("o", 3, 1, "150"),
            _close("c", 10, 3, "-90"),
        ])
        [pair] = _of(events, MatchedPair)
        [extra] = _of(events, UnmatchedClose)
        assert pair.close_portion.amount == Decimal("-30.00")
        assert extra.quantity == 2
        assert extra.close_portion.amount == Decimal("-60.00")

    def test_expiration_without_lot_is_dropped(self):
        ledger = PositionLedger()
        events = ledger.process([
            _close("exp", 21, 1, "0", side=None, closing_type=ClosingType.EXPIRATION),
        ])
        assert events == []
        assert [leg.leg_id for leg in ledger.discarded] == ["exp"]

    def test_expiration_closes_lot(self):
        events = PositionLedger().process([
            _open("o", 3, 1, "150"),
            _close("exp", 21, 1, "0", side=None, closing_type=ClosingType.EXPIRATION),
        ])
        [pair] = events
        assert pair.close_portion.leg.closing_type is ClosingType.EXPIRATION


# ---------------------------------------------------------------------------
# Direction awareness
# ---------------------------------------------------------------------------

class TestDirection:
    def test_buy_to_close_skips_long_lots(self):
        events = PositionLedger().process([
            _open("long", 3, 1, "-100", side=Side.BUY),
            _open("short", 4, 1, "150", side=Side.SELL),
            _close("btc", 10, 1, "-40", side=Side.BUY),
        ])
        [pair] = _of(events, MatchedPair)
        assert pair.open_portion.leg.leg_id == "short"
        [left] = _of(events, LeftoverOpen)
        assert left.open_portion.leg.leg_id == "long"

    def test_sell_to_close_with_only_short_lots_is_unmatched(self):
        events = PositionLedger().process([
            _open("short", 3, 1, "150", side=Side.SELL),
            _close("stc", 10, 1, "60", side=Side.SELL),
        ])
        assert len(_of(events, UnmatchedClose)) == 1
        assert len(_of(events, LeftoverOpen)) == 1

    def test_exhausted_lot_removed_from_middle_of_queue(self):
        ledger = PositionLedger()
        ledger.process([
            _open("long", 3, 1, "-100", side=Side.BUY),
            _open("short", 4, 2, "300", side=Side.SELL),
            _open("short-2", 5, 1, "140", side=Side.SELL),
            _close("btc", 10, 2, "-80", side=Side.BUY),
        ])
        [queue] = ledger.queues.values()
        assert [lot.open_leg.leg_id for lot in queue] == ["long", "short-2"]

    def test_lot_records_open_price_per_contract(self):
        ledger = PositionLedger()
        ledger.process([
            _open("o", 3, 2, "300"),
            _close("c", 10, 1, "-40"),
        ])
        [queue] = ledger.queues.values()
        [lot] = queue
        assert lot.open_amount_per_contract == Decimal("150")
        assert lot.remaining_quantity == 1
        assert lot.remaining_amount == Decimal("150.00")


# ---------------------------------------------------------------------------
# Strategy attachment
# ---------------------------------------------------------------------------

class TestStrategyAttachment:
    def test_lot_takes_order_group_strategy(self):
        put = make_leg(leg_id="put", strike="95", timestamp=datetime(2025, 3, 3, 10))
        call = make_leg(leg_id="call", strike="105", option_type=OptionType.CALL,
                        timestamp=datetime(2025, 3, 3, 10))
        index = build_strategy_index(group([put, call]))

        events = PositionLedger(index).process([put, call])

        assert {e.strategy for e in events} == {Strategy.STRANGLE}
        assert {e.group_id for e in events} == {"SPY_OPENING_20250303"}

    def test_unindexed_leg_classified_alone(self):
        [left] = PositionLedger().process([_open("o", 3, 1, "150")])
        assert left.strategy is Strategy.SHORT_PUT
        assert left.group_id is None


def test_sort_puts_opens_before_closes_at_same_instant():
    ts = datetime(2025, 3, 3, 10)
    close = make_leg(leg_id="c", direction=Direction.CLOSE, side=Side.BUY, timestamp=ts)
    opening = make_leg(leg_id="o", timestamp=ts)
    assert [leg.leg_id for leg in sort_chronologically([close, opening])] == ["o", "c"]
