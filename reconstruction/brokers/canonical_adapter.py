"""Reads back the flat records produced by ``Leg.to_record()``."""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Mapping

from reconstruction.brokers.parsers import parse_timestamp
from reconstruction.errors import NormalizationError
from reconstruction.models.trade_models import (
    ClosingType,
    Direction,
    Leg,
    OptionType,
    Side,
)

ACCOUNT_LABEL = "Imported"
NEWEST_FIRST = False


def is_trade_row(row: Mapping) -> bool:
    return bool(row.get("leg_id"))


def to_leg(row: Mapping, row_index: int) -> Leg:
    try:
        side = row.get("side") or None
        closing_type = row.get("closing_type") or None
        return Leg(
            leg_id=str(row["leg_id"]),
            underlying=str(row["underlying"]),
            option_type=OptionType(row["option_type"]),
            strike=Decimal(str(row["strike"])),
            expiry=date.fromisoformat(str(row["expiry"])),
            direction=Direction(row["direction"]),
            side=Side(side) if side else None,
            quantity=int(row["quantity"]),
            amount=Decimal(str(row["amount"])),
            timestamp=parse_timestamp(str(row["timestamp"])),
            order_key=row.get("order_key") or None,
            closing_type=ClosingType(closing_type) if closing_type else None,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        raise NormalizationError(f"invalid canonical leg record: {e}", row_index)
