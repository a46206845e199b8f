"""Single-leg strategy patterns."""

from typing import Optional

from reconstruction.models.trade_models import OptionType, Side, Strategy

from .types import LegShape

_SINGLE = {
    (OptionType.CALL, Side.BUY): Strategy.LONG_CALL,
    (OptionType.CALL, Side.SELL): Strategy.SHORT_CALL,
    (OptionType.PUT, Side.BUY): Strategy.LONG_PUT,
    (OptionType.PUT, Side.SELL): Strategy.SHORT_PUT,
}


def match_single(shape: LegShape) -> Optional[Strategy]:
    """Identify a single-leg strategy. Returns None when the side is unknown."""
    if shape.leg_count != 1:
        return None
    leg = shape.legs[0]
    return _SINGLE.get((leg.option_type, leg.side))
