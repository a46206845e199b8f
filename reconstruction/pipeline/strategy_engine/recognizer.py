"""Main strategy recognition dispatcher."""

import dataclasses
from typing import Callable, Dict, Iterable, Optional, Tuple

from reconstruction.models.trade_models import Direction, Leg, Strategy

from .adapters import legs_to_shape
from .constants import STRATEGIES
from .patterns_multi import match_iron_condor, match_straddle_strangle
from .patterns_single import match_single
from .patterns_vertical import match_vertical
from .types import LegShape, StrategyResult

# (leg count, calls, puts) -> matcher. Shapes missing here are Custom.
_MATCHERS: Dict[Tuple[int, int, int], Callable[[LegShape], Optional[Strategy]]] = {
    (1, 1, 0): match_single,
    (1, 0, 1): match_single,
    (2, 2, 0): match_vertical,
    (2, 0, 2): match_vertical,
    (2, 1, 1): match_straddle_strangle,
    (4, 2, 2): match_iron_condor,
}


def classify(legs: Iterable[Leg]) -> Strategy:
    """Classify one order's opening legs.

    Total over all inputs: shapes with no matcher, or whose matcher rejects
    them, are Custom.
    """
    shape = legs_to_shape(legs)
    matcher = _MATCHERS.get(shape.key)
    if matcher is None:
        return Strategy.CUSTOM
    return matcher(shape) or Strategy.CUSTOM


def classify_unmatched_close(leg: Leg) -> Strategy:
    """Strategy implied by a close whose open is missing.

    Buying to close means the position was short, so the leg is classified
    with its side inverted as if it were the opening leg.
    """
    if leg.side is None:
        return Strategy.CUSTOM
    implied_open = dataclasses.replace(
        leg,
        direction=Direction.OPEN,
        side=leg.side.opposite,
        closing_type=None,
    )
    return classify([implied_open])


def recognize(legs: Iterable[Leg]) -> StrategyResult:
    """Classify and attach the registry metadata."""
    legs = list(legs)
    strategy = classify(legs)
    defn = STRATEGIES[strategy]
    return StrategyResult(
        strategy=strategy,
        direction=defn.direction,
        credit_debit=defn.credit_debit,
        leg_count=legs_to_shape(legs).leg_count,
        confidence=0.0 if strategy is Strategy.CUSTOM else 1.0,
    )
