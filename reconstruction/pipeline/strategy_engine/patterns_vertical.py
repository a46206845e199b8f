"""Vertical spread patterns (2 legs, same option type)."""

from typing import Optional

from reconstruction.models.trade_models import OptionType, Strategy

from .types import LegShape


def match_vertical(shape: LegShape) -> Optional[Strategy]:
    """Identify a vertical spread from exactly 2 same-type legs.

    Requires one long and one short leg at different strikes. A spread is
    bullish when it profits from the underlying rising.
    """
    legs = shape.calls if shape.calls else shape.puts
    if len(legs) != 2 or shape.leg_count != 2:
        return None

    longs = [l for l in legs if l.is_long]
    shorts = [l for l in legs if l.is_short]
    if len(longs) != 1 or len(shorts) != 1:
        return None

    long_leg, short_leg = longs[0], shorts[0]
    if long_leg.strike == short_leg.strike:
        return None

    if long_leg.option_type is OptionType.CALL:
        # Debit: long lower call; credit: short lower call
        if long_leg.strike < short_leg.strike:
            return Strategy.BULL_CALL_SPREAD
        return Strategy.BEAR_CALL_SPREAD

    # Debit: long higher put; credit: short higher put
    if long_leg.strike > short_leg.strike:
        return Strategy.BEAR_PUT_SPREAD
    return Strategy.BULL_PUT_SPREAD
