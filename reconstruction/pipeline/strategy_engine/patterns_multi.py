"""Multi-leg patterns: Straddle, Strangle, Iron Condor."""

from typing import Optional

from reconstruction.models.trade_models import Strategy

from .types import LegShape


def match_straddle_strangle(shape: LegShape) -> Optional[Strategy]:
    """One call + one put. Sides do not have to agree."""
    if len(shape.calls) != 1 or len(shape.puts) != 1:
        return None

    call, put = shape.calls[0], shape.puts[0]
    if call.strike == put.strike:
        return Strategy.STRADDLE
    return Strategy.STRANGLE


def match_iron_condor(shape: LegShape) -> Optional[Strategy]:
    """Two calls + two puts with exactly one long and one short of each type."""
    if len(shape.calls) != 2 or len(shape.puts) != 2:
        return None

    for legs in (shape.calls, shape.puts):
        longs = sum(1 for l in legs if l.is_long)
        shorts = sum(1 for l in legs if l.is_short)
        if longs != 1 or shorts != 1:
            return None

    return Strategy.IRON_CONDOR
