"""
Order Grouper — Stage 2 of the reconstruction pipeline.

Clusters opening legs into logical orders and classifies each order once.

Two keys are supported behind the same interface:
  - explicit order linkage: every opening leg carries an ``order_key``
    (tastytrade 'Order #'), grouping is exact;
  - day heuristic: no order linkage (Robinhood), all opening legs on the same
    underlying entered on the same calendar day are one order. Two unrelated
    same-day opens on one underlying are merged by this heuristic.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Optional

from reconstruction.models.trade_models import Leg, OrderGroup, Strategy
from reconstruction.pipeline.strategy_engine import classify

logger = logging.getLogger(__name__)

__all__ = [
    "StrategyIndex",
    "uses_order_keys",
    "grouping_key",
    "group",
    "build_strategy_index",
]


@dataclass
class StrategyIndex:
    """Lookup from an opening leg to the order group it was classified in."""
    by_leg_id: Dict[str, OrderGroup] = field(default_factory=dict)

    def group_for(self, leg: Leg) -> Optional[OrderGroup]:
        return self.by_leg_id.get(leg.leg_id)

    def strategy_for(self, leg: Leg) -> Optional[Strategy]:
        found = self.group_for(leg)
        return found.strategy if found else None

    def __len__(self) -> int:
        return len(self.by_leg_id)


def uses_order_keys(opening_legs: Iterable[Leg]) -> bool:
    """True when every opening leg is explicitly linked to an order."""
    opening_legs = list(opening_legs)
    return bool(opening_legs) and all(leg.order_key for leg in opening_legs)


def grouping_key(leg: Leg, by_order_key: bool) -> Hashable:
    if by_order_key:
        return ("order", leg.order_key)
    return ("day", leg.underlying, leg.timestamp.date())


def _group_id(legs: List[Leg], by_order_key: bool) -> str:
    first = legs[0]
    group_id = f"{first.underlying}_OPENING_{first.timestamp.strftime('%Y%m%d')}"
    if by_order_key:
        group_id += f"_{first.order_key}"
    return group_id


def group(legs: Iterable[Leg]) -> List[OrderGroup]:
    """Group and classify the opening legs; closing legs are ignored.

    Returns groups ordered by their earliest leg.
    """
    opening = [leg for leg in legs if leg.is_opening]
    by_order_key = uses_order_keys(opening)

    buckets: Dict[Hashable, List[Leg]] = defaultdict(list)
    for leg in opening:
        buckets[grouping_key(leg, by_order_key)].append(leg)

    groups: List[OrderGroup] = []
    for bucket in buckets.values():
        strategy = classify(bucket)
        groups.append(OrderGroup(
            group_id=_group_id(bucket, by_order_key),
            legs=tuple(bucket),
            strategy=strategy,
        ))
        logger.debug(
            "Order group %s: %d legs -> %s",
            groups[-1].group_id, len(bucket), strategy.value,
        )

    groups.sort(key=lambda g: g.opened_at)
    logger.info(
        "Grouped %d opening legs into %d orders (%s)",
        len(opening), len(groups), "order id" if by_order_key else "underlying+day",
    )
    return groups


def build_strategy_index(groups: Iterable[OrderGroup]) -> StrategyIndex:
    index = StrategyIndex()
    for order_group in groups:
        for leg in order_group.legs:
            index.by_leg_id[leg.leg_id] = order_group
    return index
