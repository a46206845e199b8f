"""
Trade Aggregator — Stage 4 of the reconstruction pipeline.

Turns each ledger event into a ``Trade``. A trade's economics only ever come
from the leg portions the ledger handed over, so a 3-of-5 partial close is
priced on 3/5 of the open cash flow.

``rollup_by_group`` optionally folds per-leg trades opened by the same order
and closed on the same day back into one strategy-level trade.
"""

import logging
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Tuple

from reconstruction.models.trade_models import (
    LeftoverOpen,
    LegPortion,
    MatchedEvent,
    MatchedPair,
    Trade,
    UnmatchedClose,
)
from reconstruction.pipeline.strategy_engine import classify_unmatched_close

logger = logging.getLogger(__name__)

__all__ = ["aggregate", "aggregate_all", "rollup_by_group", "debit_credit"]

CENT = Decimal("0.01")
MIXED = "Mixed"


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def debit_credit(portions: Iterable[LegPortion]) -> Tuple[Decimal, Decimal]:
    """Split portion amounts into (debit, credit); both are non-negative."""
    debit = Decimal("0")
    credit = Decimal("0")
    for portion in portions:
        if portion.amount > 0:
            credit += portion.amount
        elif portion.amount < 0:
            debit += -portion.amount
    return _cents(debit), _cents(credit)


def aggregate(event: MatchedEvent, account: str) -> Trade:
    """Build the trade for a single ledger event."""
    if isinstance(event, MatchedPair):
        open_leg = event.open_portion.leg
        close_leg = event.close_portion.leg
        debit, credit = debit_credit((event.open_portion, event.close_portion))
        return Trade(
            symbol=open_leg.underlying,
            option_type=open_leg.option_type.value,
            strategy=event.strategy,
            strikes=(open_leg.strike,),
            expiry=open_leg.expiry,
            volume=event.quantity,
            entry_date=open_leg.timestamp.date(),
            exit_date=close_leg.timestamp.date(),
            debit=debit,
            credit=credit,
            account=account,
            group_id=event.group_id,
            closing_type=close_leg.closing_type,
        )

    if isinstance(event, LeftoverOpen):
        open_leg = event.open_portion.leg
        debit, credit = debit_credit((event.open_portion,))
        return Trade(
            symbol=open_leg.underlying,
            option_type=open_leg.option_type.value,
            strategy=event.strategy,
            strikes=(open_leg.strike,),
            expiry=open_leg.expiry,
            volume=event.quantity,
            entry_date=open_leg.timestamp.date(),
            exit_date=None,
            debit=debit,
            credit=credit,
            account=account,
            group_id=event.group_id,
        )

    if isinstance(event, UnmatchedClose):
        close_leg = event.close_portion.leg
        closed_on = close_leg.timestamp.date()
        debit, credit = debit_credit((event.close_portion,))
        return Trade(
            symbol=close_leg.underlying,
            option_type=close_leg.option_type.value,
            strategy=classify_unmatched_close(close_leg),
            strikes=(close_leg.strike,),
            expiry=close_leg.expiry,
            volume=event.quantity,
            entry_date=closed_on,
            exit_date=closed_on,
            debit=debit,
            credit=credit,
            account=account,
            incomplete=True,
            closing_type=close_leg.closing_type,
        )

    raise TypeError(f"Unknown ledger event: {type(event).__name__}")


def aggregate_all(events: Iterable[MatchedEvent], account: str) -> List[Trade]:
    trades = [aggregate(event, account) for event in events]
    logger.debug("Aggregated %d trades for %s", len(trades), account)
    return trades


def _merge(parts: List[Trade]) -> Trade:
    first = parts[0]
    option_types = {t.option_type for t in parts}
    strikes: List[Decimal] = []
    for t in parts:
        for strike in t.strikes:
            if strike not in strikes:
                strikes.append(strike)

    closing_types = {t.closing_type for t in parts}
    return Trade(
        symbol=first.symbol,
        option_type=first.option_type if len(option_types) == 1 else MIXED,
        strategy=first.strategy,
        strikes=tuple(sorted(strikes)),
        expiry=min(t.expiry for t in parts),
        volume=first.volume,
        entry_date=min(t.entry_date for t in parts),
        exit_date=first.exit_date,
        debit=_cents(sum((t.debit for t in parts), Decimal("0"))),
        credit=_cents(sum((t.credit for t in parts), Decimal("0"))),
        account=first.account,
        incomplete=any(t.incomplete for t in parts),
        group_id=first.group_id,
        closing_type=closing_types.pop() if len(closing_types) == 1 else None,
        leg_count=sum(t.leg_count for t in parts),
    )


def rollup_by_group(trades: Iterable[Trade]) -> List[Trade]:
    """Merge per-leg trades sharing an order group and exit date.

    Trades without a group (unmatched closes) pass through unchanged. The
    result keeps the position of each group's first trade.
    """
    buckets: "OrderedDict[Tuple, List[Trade]]" = OrderedDict()
    for index, trade in enumerate(trades):
        if trade.group_id is None:
            key: Tuple = ("single", index)
        else:
            key = ("group", trade.group_id, trade.exit_date)
        buckets.setdefault(key, []).append(trade)

    rolled = [parts[0] if len(parts) == 1 else _merge(parts) for parts in buckets.values()]
    logger.debug("Rolled %d bucket(s) into strategy-level trades", len(rolled))
    return rolled
