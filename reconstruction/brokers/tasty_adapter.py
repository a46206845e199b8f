"""
tastytrade transaction export -> canonical Leg.

tastytrade links the legs of a multi-leg order through the 'Order #' column
and identifies each contract with a fixed-width OCC symbol
("SPY   250606P00500000"). Expirations, assignments and exercises arrive as
'Receive Deliver' rows without an order number.
"""

from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from reconstruction.brokers.parsers import (
    OptionContract,
    parse_amount,
    parse_occ_symbol,
    parse_option_type,
    parse_quantity,
    parse_timestamp,
    parse_us_date,
)
from reconstruction.errors import NormalizationError
from reconstruction.models.trade_models import ClosingType, Direction, Leg, Side

ACCOUNT_LABEL = "TastyTrade"
NEWEST_FIRST = True

_ACTIONS: Dict[str, Tuple[Direction, Side]] = {
    "SELL_TO_OPEN": (Direction.OPEN, Side.SELL),
    "BUY_TO_OPEN": (Direction.OPEN, Side.BUY),
    "SELL_TO_CLOSE": (Direction.CLOSE, Side.SELL),
    "BUY_TO_CLOSE": (Direction.CLOSE, Side.BUY),
}


def _field(row: Mapping, name: str) -> str:
    value = row.get(name)
    return str(value).strip() if value is not None else ""


def _action(row: Mapping) -> str:
    action = _field(row, "Action").upper().replace(" ", "_")
    if not action:
        # Older exports only carry the human-readable sub type ("Sell to Open")
        action = _field(row, "Sub Type").upper().replace(" ", "_")
    return action


def _system_closing_type(row: Mapping) -> Optional[ClosingType]:
    sub_type = _field(row, "Sub Type").upper()
    if "EXPIR" in sub_type:
        return ClosingType.EXPIRATION
    if "ASSIGNMENT" in sub_type:
        return ClosingType.ASSIGNMENT
    if "EXERCISE" in sub_type:
        return ClosingType.EXERCISE
    return None


def is_trade_row(row: Mapping) -> bool:
    """Option fills and option lifecycle events; Money Movement, equity
    trades and balance adjustments are not legs."""
    if "OPTION" not in _field(row, "Instrument Type").upper():
        return False
    return _action(row) in _ACTIONS or _system_closing_type(row) is not None


def _contract(row: Mapping) -> OptionContract:
    symbol = _field(row, "Symbol")
    try:
        contract = parse_occ_symbol(symbol)
    except ValueError:
        # Fall back to the exploded columns
        root = _field(row, "Root Symbol") or _field(row, "Underlying Symbol")
        if not root:
            raise
        contract = OptionContract(
            underlying=root.upper(),
            option_type=parse_option_type(_field(row, "Call or Put")),
            strike=parse_amount(_field(row, "Strike Price")),
            expiry=parse_us_date(_field(row, "Expiration Date")),
        )

    underlying = _field(row, "Underlying Symbol").upper()
    if underlying and underlying != contract.underlying:
        contract = OptionContract(
            underlying=underlying,
            option_type=contract.option_type,
            strike=contract.strike,
            expiry=contract.expiry,
        )
    return contract


def to_leg(row: Mapping, row_index: int) -> Leg:
    action = _action(row)
    closing_type = _system_closing_type(row)

    if closing_type is not None:
        direction = Direction.CLOSE
        side = _ACTIONS[action][1] if action in _ACTIONS else None
    elif action in _ACTIONS:
        direction, side = _ACTIONS[action]
        if direction is Direction.CLOSE:
            closing_type = ClosingType.MANUAL
    else:
        raise NormalizationError(f"unsupported action {action!r}", row_index)

    try:
        contract = _contract(row)
        quantity = parse_quantity(_field(row, "Quantity"))
        timestamp = parse_timestamp(_field(row, "Date"))
        amount = parse_amount(_field(row, "Value") or _field(row, "Total"))
    except ValueError as e:
        raise NormalizationError(str(e), row_index)

    if closing_type is ClosingType.EXPIRATION:
        amount = Decimal("0")

    return Leg(
        leg_id=f"tastytrade-{row_index}",
        underlying=contract.underlying,
        option_type=contract.option_type,
        strike=contract.strike,
        expiry=contract.expiry,
        direction=direction,
        side=side,
        quantity=quantity,
        amount=amount,
        timestamp=timestamp,
        order_key=_field(row, "Order #") or None,
        closing_type=closing_type,
    )
