"""
Canonical data model for trade reconstruction.

Every broker adapter emits ``Leg`` objects; everything downstream (grouping,
classification, the FIFO ledger and the aggregator) only ever sees these
types, never a raw broker row.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class OptionType(Enum):
    CALL = "Call"
    PUT = "Put"


class Direction(Enum):
    OPEN = "Open"
    CLOSE = "Close"


class Side(Enum):
    BUY = "Buy"
    SELL = "Sell"

    @property
    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


class ClosingType(Enum):
    MANUAL = "MANUAL"
    EXPIRATION = "EXPIRATION"
    ASSIGNMENT = "ASSIGNMENT"
    EXERCISE = "EXERCISE"


class Strategy(Enum):
    LONG_CALL = "Long Call"
    SHORT_CALL = "Short Call"
    LONG_PUT = "Long Put"
    SHORT_PUT = "Short Put"
    BULL_CALL_SPREAD = "Bull Call Spread"
    BEAR_CALL_SPREAD = "Bear Call Spread"
    BULL_PUT_SPREAD = "Bull Put Spread"
    BEAR_PUT_SPREAD = "Bear Put Spread"
    STRADDLE = "Straddle"
    STRANGLE = "Strangle"
    IRON_CONDOR = "Iron Condor"
    CUSTOM = "Custom"


def format_decimal(value: Decimal) -> str:
    """Render a Decimal without exponent or trailing zeros (500.000 -> '500')."""
    text = format(value.normalize(), "f")
    return text if text != "-0" else "0"


@dataclass(frozen=True)
class Leg:
    """One normalized option transaction."""
    leg_id: str
    underlying: str
    option_type: OptionType
    strike: Decimal
    expiry: date
    direction: Direction
    side: Optional[Side]        # None only for expiration/assignment/exercise
    quantity: int               # Contracts, always positive
    amount: Decimal             # + received, - paid
    timestamp: datetime
    order_key: Optional[str] = None
    closing_type: Optional[ClosingType] = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"Leg {self.leg_id}: quantity must be positive, got {self.quantity}")

    @property
    def position_key(self) -> str:
        return "|".join((
            self.underlying,
            format_decimal(self.strike),
            self.option_type.value,
            self.expiry.isoformat(),
        ))

    @property
    def is_opening(self) -> bool:
        return self.direction is Direction.OPEN

    @property
    def is_closing(self) -> bool:
        return self.direction is Direction.CLOSE

    @property
    def is_buy(self) -> bool:
        return self.side is Side.BUY

    @property
    def is_sell(self) -> bool:
        return self.side is Side.SELL

    @property
    def is_system_close(self) -> bool:
        """Expiration, assignment or exercise: a close the trader never sent."""
        return self.is_closing and self.closing_type not in (None, ClosingType.MANUAL)

    @property
    def amount_per_contract(self) -> Decimal:
        return self.amount / self.quantity

    def to_record(self) -> Dict[str, str]:
        """Flat string record; the canonical adapter reads it back unchanged."""
        return {
            "leg_id": self.leg_id,
            "underlying": self.underlying,
            "option_type": self.option_type.value,
            "strike": str(self.strike),
            "expiry": self.expiry.isoformat(),
            "direction": self.direction.value,
            "side": self.side.value if self.side else "",
            "quantity": str(self.quantity),
            "amount": str(self.amount),
            "timestamp": self.timestamp.isoformat(),
            "order_key": self.order_key or "",
            "closing_type": self.closing_type.value if self.closing_type else "",
        }


@dataclass(frozen=True)
class OrderGroup:
    """Opening legs of one logical order and the strategy they form."""
    group_id: str
    legs: Tuple[Leg, ...]
    strategy: Strategy

    @property
    def underlying(self) -> str:
        return self.legs[0].underlying

    @property
    def opened_at(self) -> datetime:
        return min(leg.timestamp for leg in self.legs)

    @property
    def leg_ids(self) -> Tuple[str, ...]:
        return tuple(leg.leg_id for leg in self.legs)


@dataclass
class PositionLot:
    """Remaining open quantity of one opening leg, owned by the ledger."""
    position_key: str
    open_leg: Leg
    open_timestamp: datetime
    open_amount_per_contract: Decimal   # informational; splits use remaining_amount
    open_side: Optional[Side]
    original_quantity: int
    remaining_quantity: int
    remaining_amount: Decimal   # open cash flow not yet handed to an event
    strategy: Strategy
    group_id: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.remaining_quantity == 0

    @property
    def is_short(self) -> bool:
        return self.open_side is Side.SELL

    @property
    def is_long(self) -> bool:
        return self.open_side is Side.BUY


@dataclass(frozen=True)
class LegPortion:
    """A slice of a leg: ``quantity`` contracts carrying ``amount`` of its cash flow."""
    leg: Leg
    quantity: int
    amount: Decimal


@dataclass(frozen=True)
class MatchedPair:
    """An open portion closed by a close portion of the same size."""
    open_portion: LegPortion
    close_portion: LegPortion
    strategy: Strategy
    group_id: Optional[str] = None

    @property
    def quantity(self) -> int:
        return self.close_portion.quantity


@dataclass(frozen=True)
class LeftoverOpen:
    """Quantity still open once every close has been consumed."""
    open_portion: LegPortion
    strategy: Strategy
    group_id: Optional[str] = None

    @property
    def quantity(self) -> int:
        return self.open_portion.quantity


@dataclass(frozen=True)
class UnmatchedClose:
    """Close quantity with no open lot to consume; its cost basis is unknown."""
    close_portion: LegPortion

    @property
    def quantity(self) -> int:
        return self.close_portion.quantity


MatchedEvent = Union[MatchedPair, LeftoverOpen, UnmatchedClose]


@dataclass(frozen=True)
class Trade:
    """A reconstructed trade, ready for the analytics layer."""
    symbol: str
    option_type: str            # "Call", "Put" or "Mixed" for rolled-up groups
    strategy: Strategy
    strikes: Tuple[Decimal, ...]
    expiry: date
    volume: int
    entry_date: date
    exit_date: Optional[date]
    debit: Decimal
    credit: Decimal
    account: str
    incomplete: bool = False
    group_id: Optional[str] = None
    closing_type: Optional[ClosingType] = None
    leg_count: int = field(default=1, compare=False)

    @property
    def strike(self) -> Decimal:
        ordered = sorted(self.strikes)
        return ordered[len(ordered) // 2]

    @property
    def is_open(self) -> bool:
        return self.exit_date is None

    @property
    def net(self) -> Decimal:
        return self.credit - self.debit

    def to_record(self) -> Dict[str, object]:
        return {
            "Symbol": self.symbol,
            "Type": self.option_type,
            "Strategy": self.strategy.value,
            "Strike": float(self.strike),
            "Strikes": [float(s) for s in sorted(self.strikes)],
            "Expiry": self.expiry.isoformat(),
            "Volume": self.volume,
            "Entry": self.entry_date.isoformat(),
            "Exit": self.exit_date.isoformat() if self.exit_date else None,
            "Debit": float(self.debit),
            "Credit": float(self.credit),
            "Account": self.account,
            "Incomplete": self.incomplete,
            "GroupId": self.group_id,
            "ClosingType": self.closing_type.value if self.closing_type else None,
        }
