"""Unit tests for opening-leg grouping and the strategy index."""

from datetime import datetime

from reconstruction.models.trade_models import Direction, OptionType, Side, Strategy
from reconstruction.pipeline.order_grouper import (
    build_strategy_index,
    group,
    grouping_key,
    uses_order_keys,
)
from tests.conftest import make_leg


def _strangle(day=3, order_key=None, prefix="a"):
    ts = datetime(2025, 3, day, 10, 0)
    return [
        make_leg(leg_id=f"{prefix}-put", strike="95", option_type=OptionType.PUT,
                 timestamp=ts, order_key=order_key),
        make_leg(leg_id=f"{prefix}-call", strike="105", option_type=OptionType.CALL,
                 timestamp=ts, order_key=order_key),
    ]


# ---------------------------------------------------------------------------
# Day heuristic (no order linkage)
# ---------------------------------------------------------------------------

class TestDayGrouping:
    def test_same_day_same_underlying_is_one_order(self):
        groups = group(_strangle())
        assert len(groups) == 1
        assert groups[0].strategy is Strategy.STRANGLE
        assert groups[0].group_id == "SPY_OPENING_20250303"
        assert groups[0].leg_ids == ("a-put", "a-call")

    def test_different_days_split(self):
        legs = _strangle(day=3, prefix="a") + _strangle(day=4, prefix="b")
        groups = group(legs)
        assert [g.group_id for g in groups] == ["SPY_OPENING_20250303", "SPY_OPENING_20250304"]

    def test_different_underlyings_split(self):
        legs = [
            make_leg(leg_id="spy", underlying="SPY"),
            make_leg(leg_id="qqq", underlying="QQQ"),
        ]
        groups = group(legs)
        assert len(groups) == 2
        assert all(g.strategy is Strategy.SHORT_PUT for g in groups)

    def test_closing_legs_ignored(self):
        legs = _strangle() + [make_leg(leg_id="close", direction=Direction.CLOSE, side=Side.BUY)]
        groups = group(legs)
        assert len(groups) == 1
        assert "close" not in groups[0].leg_ids

    def test_no_opening_legs(self):
        assert group([make_leg(direction=Direction.CLOSE, side=Side.BUY)]) == []


# ---------------------------------------------------------------------------
# Explicit order linkage
# ---------------------------------------------------------------------------

class TestOrderKeyGrouping:
    def test_order_key_separates_same_day_orders(self):
        legs = _strangle(order_key="1001", prefix="a") + [
            make_leg(leg_id="b-put", strike="90", order_key="1002",
                     timestamp=datetime(2025, 3, 3, 11, 0)),
        ]
        groups = group(legs)

        assert [g.strategy for g in groups] == [Strategy.STRANGLE, Strategy.SHORT_PUT]
        assert groups[0].group_id == "SPY_OPENING_20250303_1001"

    def test_uses_order_keys_requires_all(self):
        legs = _strangle(order_key="1001")
        assert uses_order_keys(legs)
        assert not uses_order_keys(legs + [make_leg(leg_id="loose")])
        assert not uses_order_keys([])

    def test_grouping_key_shapes(self):
        leg = make_leg(order_key="77")
        assert grouping_key(leg, by_order_key=True) == ("order", "77")
        assert grouping_key(leg, by_order_key=False)[0] == "day"


# ---------------------------------------------------------------------------
# Strategy index
# ---------------------------------------------------------------------------

class TestStrategyIndex:
    def test_index_by_leg_id(self):
        legs = _strangle()
        index = build_strategy_index(group(legs))

        assert len(index) == 2
        assert index.strategy_for(legs[0]) is Strategy.STRANGLE
        assert index.group_for(legs[1]).group_id == "SPY_OPENING_20250303"

    def test_unknown_leg(self):
        index = build_strategy_index([])
        assert index.group_for(make_leg(leg_id="nope")) is None
        assert index.strategy_for(make_leg(leg_id="nope")) is None
