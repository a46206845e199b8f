"""Adapters that bridge canonical Legs to the strategy engine's shape descriptor."""

from collections import defaultdict
from typing import Iterable

from reconstruction.models.trade_models import Leg, OptionType

from .types import LegShape, ShapeLeg


def legs_to_shape(legs: Iterable[Leg]) -> LegShape:
    """Build the shape descriptor for a set of opening legs.

    Legs sharing the same structural identity are merged (split fills of one
    contract): (option_type, strike, expiry, side).
    """
    groups: dict = defaultdict(int)
    order = []

    for leg in legs:
        key = (leg.option_type, leg.strike, leg.expiry, leg.side)
        if key not in groups:
            order.append(key)
        groups[key] += leg.quantity

    calls, puts = [], []
    for option_type, strike, _expiry, side in order:
        shape_leg = ShapeLeg(
            option_type=option_type,
            side=side,
            strike=strike,
            quantity=groups[(option_type, strike, _expiry, side)],
        )
        if option_type is OptionType.CALL:
            calls.append(shape_leg)
        else:
            puts.append(shape_leg)

    return LegShape(calls=tuple(calls), puts=tuple(puts))
