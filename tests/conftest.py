"""
Shared pytest fixtures and row factory helpers for OptionRecon tests.

The factories build rows exactly as the broker exports spell them (string
values, broker column names) so tests exercise the real adapters.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from reconstruction.config import Settings
from reconstruction.models.trade_models import ClosingType, Direction, Leg, OptionType, Side


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    """Settings with defaults only; nothing read from the environment."""
    return Settings()


# ---------------------------------------------------------------------------
# Row factory helpers
# ---------------------------------------------------------------------------

def make_robinhood_row(
    *,
    activity_date="3/3/2025",
    instrument="SPY",
    description="SPY 3/21/2025 Put $95.00",
    trans_code="STO",
    quantity="1",
    price="$1.50",
    amount="$150.00",
):
    """Build a raw Robinhood activity row."""
    return {
        "Activity Date": activity_date,
        "Process Date": activity_date,
        "Settle Date": activity_date,
        "Instrument": instrument,
        "Description": description,
        "Trans Code": trans_code,
        "Quantity": quantity,
        "Price": price,
        "Amount": amount,
    }


def make_tasty_row(
    *,
    date="2025-03-03T10:00:00-0500",
    type="Trade",
    sub_type="Sell to Open",
    action="SELL_TO_OPEN",
    symbol="SPY   250321P00095000",
    instrument_type="Equity Option",
    description="Sold 1 SPY 03/21/25 Put 95.00 @ 1.50",
    value="150.00",
    quantity="1",
    average_price="150.00",
    order_number="1001",
    underlying_symbol="SPY",
    expiration_date="3/21/25",
    strike_price="95",
    call_or_put="PUT",
):
    """Build a raw tastytrade transactions row."""
    return {
        "Date": date,
        "Type": type,
        "Sub Type": sub_type,
        "Action": action,
        "Symbol": symbol,
        "Instrument Type": instrument_type,
        "Description": description,
        "Value": value,
        "Quantity": quantity,
        "Average Price": average_price,
        "Commissions": "0.00",
        "Fees": "0.00",
        "Multiplier": "100",
        "Root Symbol": underlying_symbol,
        "Underlying Symbol": underlying_symbol,
        "Expiration Date": expiration_date,
        "Strike Price": strike_price,
        "Call or Put": call_or_put,
        "Order #": order_number,
        "Total": value,
        "Currency": "USD",
    }


def make_leg(
    *,
    leg_id="leg-1",
    underlying="SPY",
    option_type=OptionType.PUT,
    strike="95",
    expiry=date(2025, 3, 21),
    direction=Direction.OPEN,
    side=Side.SELL,
    quantity=1,
    amount="150",
    timestamp=datetime(2025, 3, 3, 10, 0),
    order_key=None,
    closing_type=None,
):
    """Build a canonical Leg. Manual closes get ClosingType.MANUAL by default."""
    if closing_type is None and direction is Direction.CLOSE:
        closing_type = ClosingType.MANUAL
    return Leg(
        leg_id=leg_id,
        underlying=underlying,
        option_type=option_type,
        strike=Decimal(strike),
        expiry=expiry,
        direction=direction,
        side=side,
        quantity=quantity,
        amount=Decimal(amount),
        timestamp=timestamp,
        order_key=order_key,
        closing_type=closing_type,
    )
