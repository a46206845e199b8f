"""
Robinhood activity export -> canonical Leg.

Robinhood rows carry no order linkage: each leg is a standalone row keyed by
'Activity Date', 'Instrument', 'Description' ("QQQ 4/11/2025 Call $460.00")
and a 'Trans Code'. Exports are newest-first.
"""

import re
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from reconstruction.brokers.parsers import (
    parse_amount,
    parse_option_description,
    parse_quantity,
    parse_timestamp,
)
from reconstruction.errors import NormalizationError
from reconstruction.models.trade_models import ClosingType, Direction, Leg, Side

ACCOUNT_LABEL = "Robinhood"
NEWEST_FIRST = True

_TRADE_CODES: Dict[str, Tuple[Direction, Side]] = {
    "STO": (Direction.OPEN, Side.SELL),
    "BTO": (Direction.OPEN, Side.BUY),
    "STC": (Direction.CLOSE, Side.SELL),
    "BTC": (Direction.CLOSE, Side.BUY),
}

_SYSTEM_CODES: Dict[str, ClosingType] = {
    "OEXP": ClosingType.EXPIRATION,
    "OASGN": ClosingType.ASSIGNMENT,
    "OEXCS": ClosingType.EXERCISE,
}

_QTY_SUFFIX_RE = re.compile(r"[A-Za-z]+$")


def _field(row: Mapping, name: str) -> str:
    value = row.get(name)
    return str(value).strip() if value is not None else ""


def _trans_code(row: Mapping) -> str:
    return _field(row, "Trans Code").upper()


def is_trade_row(row: Mapping) -> bool:
    """Option trades and option lifecycle events; everything else (ACH, INT,
    GOLD, CDIV, stock buys...) is not a leg."""
    code = _trans_code(row)
    return code in _TRADE_CODES or code in _SYSTEM_CODES


def to_leg(row: Mapping, row_index: int) -> Leg:
    code = _trans_code(row)
    closing_type: Optional[ClosingType] = None

    if code in _TRADE_CODES:
        direction, side = _TRADE_CODES[code]
        if direction is Direction.CLOSE:
            closing_type = ClosingType.MANUAL
    elif code in _SYSTEM_CODES:
        direction, side = Direction.CLOSE, None
        closing_type = _SYSTEM_CODES[code]
    else:
        raise NormalizationError(f"unsupported trans code {code!r}", row_index)

    try:
        contract = parse_option_description(_field(row, "Description"))
        # Lifecycle rows report "1S" / "1L" and may leave it blank
        raw_quantity = _QTY_SUFFIX_RE.sub("", _field(row, "Quantity"))
        if not raw_quantity and code in _SYSTEM_CODES:
            raw_quantity = "1"
        quantity = parse_quantity(raw_quantity)
        timestamp = parse_timestamp(_field(row, "Activity Date"))
        amount = parse_amount(_field(row, "Amount"))
    except ValueError as e:
        raise NormalizationError(str(e), row_index)

    if closing_type is ClosingType.EXPIRATION:
        amount = Decimal("0")

    return Leg(
        leg_id=f"robinhood-{row_index}",
        underlying=contract.underlying,
        option_type=contract.option_type,
        strike=contract.strike,
        expiry=contract.expiry,
        direction=direction,
        side=side,
        quantity=quantity,
        amount=amount,
        timestamp=timestamp,
        order_key=None,
        closing_type=closing_type,
    )
