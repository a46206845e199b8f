"""
Position Ledger — Stage 3 of the reconstruction pipeline.

Creates lots from opening legs and FIFO-closes them with closing legs in a
single chronological pass. Every event the ledger emits carries immutable
leg portions; the mutable ``PositionLot`` queues never leave the ledger.

A close of ``q`` contracts consumes the oldest matching lot first, splitting
both the open and the close cash flow by the number of contracts consumed.
Close quantity no lot can cover becomes an ``UnmatchedClose`` (incomplete
trade), except for expirations/assignments/exercises, which carry no cash
flow and are simply dropped.
"""

import logging
from collections import defaultdict, deque
from decimal import ROUND_HALF_UP, Decimal
from typing import Deque, Dict, Iterable, List, Optional

from reconstruction.models.trade_models import (
    LeftoverOpen,
    Leg,
    LegPortion,
    MatchedEvent,
    MatchedPair,
    PositionLot,
    Side,
    UnmatchedClose,
)
from reconstruction.pipeline.order_grouper import StrategyIndex
from reconstruction.pipeline.strategy_engine import classify

logger = logging.getLogger(__name__)

__all__ = ["PositionLedger", "sort_chronologically", "split_amount"]

CENT = Decimal("0.01")


def sort_chronologically(legs: Iterable[Leg]) -> List[Leg]:
    """Stable sort by timestamp; opens precede closes at the same instant.

    FIFO matching is only defined for time-ordered input, so the ledger
    sorts internally rather than trusting the caller.
    """
    return sorted(legs, key=lambda leg: (leg.timestamp, 0 if leg.is_opening else 1))


def split_amount(remaining_amount: Decimal, remaining_quantity: int, consumed: int) -> Decimal:
    """Share of ``remaining_amount`` owed to ``consumed`` of ``remaining_quantity`` contracts.

    Consuming everything that is left returns the exact remainder, so the
    portions of one leg always add back up to its amount.
    """
    if consumed >= remaining_quantity:
        return remaining_amount
    share = remaining_amount * consumed / remaining_quantity
    return share.quantize(CENT, rounding=ROUND_HALF_UP)


def _can_close(lot: PositionLot, close_side: Optional[Side]) -> bool:
    # Buy-to-close consumes short lots, sell-to-close consumes long lots
    if close_side is None or lot.open_side is None:
        return True
    return lot.open_side is close_side.opposite


class PositionLedger:
    """FIFO lot matcher. Use one instance per batch."""

    def __init__(self, strategy_index: Optional[StrategyIndex] = None):
        self.strategy_index = strategy_index or StrategyIndex()
        self.queues: Dict[str, Deque[PositionLot]] = defaultdict(deque)
        self.discarded: List[Leg] = []

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def process(self, legs: Iterable[Leg]) -> List[MatchedEvent]:
        """Match closes to opens and return every resulting event.

        Events are emitted in processing order; lots still open at the end
        follow as ``LeftoverOpen`` events, oldest first.
        """
        self.queues = defaultdict(deque)
        self.discarded = []

        events: List[MatchedEvent] = []
        for leg in sort_chronologically(legs):
            if leg.is_opening:
                self._open(leg)
            else:
                events.extend(self._close(leg))

        events.extend(self._drain())
        return events

    # ------------------------------------------------------------------
    # Lot operations
    # ------------------------------------------------------------------

    def _open(self, leg: Leg) -> None:
        order_group = self.strategy_index.group_for(leg)
        if order_group is not None:
            strategy, group_id = order_group.strategy, order_group.group_id
        else:
            strategy, group_id = classify([leg]), None

        lot = PositionLot(
            position_key=leg.position_key,
            open_leg=leg,
            open_timestamp=leg.timestamp,
            open_amount_per_contract=leg.amount_per_contract,
            open_side=leg.side,
            original_quantity=leg.quantity,
            remaining_quantity=leg.quantity,
            remaining_amount=leg.amount,
            strategy=strategy,
            group_id=group_id,
        )
        self.queues[lot.position_key].append(lot)
        logger.debug(
            "Opened lot %s qty=%d per_contract=%s strategy=%s",
            lot.position_key, lot.original_quantity, lot.open_amount_per_contract, strategy.value,
        )

    def _next_lot(self, queue: Deque[PositionLot], leg: Leg) -> Optional[PositionLot]:
        """Oldest lot in the queue this close may consume.

        Usually the front of the queue, but a close skips lots whose side it
        cannot close (a buy-to-close never consumes a long lot), so it may
        take a lot from further back. Removing that lot once it is exhausted
        is then O(n) in the queue length.
        """
        if queue and _can_close(queue[0], leg.side):
            return queue[0]
        return next((lot for lot in queue if _can_close(lot, leg.side)), None)

    def _close(self, leg: Leg) -> List[MatchedEvent]:
        queue = self.queues.get(leg.position_key)
        events: List[MatchedEvent] = []

        remaining = leg.quantity
        remaining_close_amount = leg.amount

        while remaining > 0 and queue:
            lot = self._next_lot(queue, leg)
            if lot is None:
                break

            consumed = min(remaining, lot.remaining_quantity)

            open_amount = split_amount(lot.remaining_amount, lot.remaining_quantity, consumed)
            close_amount = split_amount(remaining_close_amount, remaining, consumed)

            events.append(MatchedPair(
                open_portion=LegPortion(lot.open_leg, consumed, open_amount),
                close_portion=LegPortion(leg, consumed, close_amount),
                strategy=lot.strategy,
                group_id=lot.group_id,
            ))

            lot.remaining_quantity -= consumed
            lot.remaining_amount -= open_amount
            remaining -= consumed
            remaining_close_amount -= close_amount

            logger.debug(
                "Closed %d from lot %s opened %s (%d left)",
                consumed, lot.position_key, lot.open_timestamp, lot.remaining_quantity,
            )

            if lot.is_closed:
                queue.remove(lot)

        if remaining > 0:
            if leg.is_system_close:
                # Expiration/assignment/exercise of a position we never saw open
                self.discarded.append(leg)
                logger.debug(
                    "Discarding %s of %s: no open lot for %d contracts",
                    leg.closing_type.value, leg.position_key, remaining,
                )
            else:
                logger.warning(
                    "Closing %s x%d on %s has no matching open lot",
                    leg.position_key, remaining, leg.timestamp.date(),
                )
                events.append(UnmatchedClose(
                    close_portion=LegPortion(leg, remaining, remaining_close_amount),
                ))

        return events

    def _drain(self) -> List[MatchedEvent]:
        leftovers = []
        for queue in self.queues.values():
            for lot in queue:
                leftovers.append(LeftoverOpen(
                    open_portion=LegPortion(
                        lot.open_leg,
                        lot.remaining_quantity,
                        lot.remaining_amount,
                    ),
                    strategy=lot.strategy,
                    group_id=lot.group_id,
                ))
        leftovers.sort(key=lambda e: e.open_portion.leg.timestamp)
        return leftovers
