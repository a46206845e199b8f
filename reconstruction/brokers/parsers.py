"""Field-level parsers shared by the broker adapters.

All parsers raise ``ValueError`` on input they cannot interpret; the adapters
turn that into a ``NormalizationError`` carrying the row index.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from reconstruction.models.trade_models import OptionType

# "SPY   250606P00500000": root, YYMMDD, C/P, strike * 1000 (8 digits)
_OCC_RE = re.compile(
    r"^(?P<root>[A-Z][A-Z0-9./]{0,5})\s*(?P<date>\d{6})(?P<type>[CP])(?P<strike>\d{8})$"
)

# "QQQ 4/11/2025 Call $460.00", optionally prefixed ("Option Expiration for ...")
_DESCRIPTION_RE = re.compile(
    r"(?P<symbol>[A-Z][A-Z0-9./]*)\s+"
    r"(?P<date>\d{1,2}/\d{1,2}/\d{4})\s+"
    r"(?P<type>call|put)\s+"
    r"\$?(?P<strike>\d[\d,]*(?:\.\d+)?)",
    re.IGNORECASE,
)

# "1.22 cr" / "0.37 db" / "12.00 dr"
_SUFFIX_RE = re.compile(r"^(?P<number>.*?)\s*(?P<suffix>cr|db|dr)\.?$", re.IGNORECASE)

# "-0400" -> "-04:00" so datetime.fromisoformat accepts it
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


@dataclass(frozen=True)
class OptionContract:
    """Contract identity parsed out of a broker's option identifier."""
    underlying: str
    option_type: OptionType
    strike: Decimal
    expiry: date


def parse_option_type(value: str) -> OptionType:
    text = (value or "").strip().upper()
    if text in ("C", "CALL"):
        return OptionType.CALL
    if text in ("P", "PUT"):
        return OptionType.PUT
    raise ValueError(f"Unknown option type: {value!r}")


def parse_occ_symbol(symbol: str) -> OptionContract:
    """Parse a fixed-width OCC option code."""
    match = _OCC_RE.match((symbol or "").strip().upper())
    if not match:
        raise ValueError(f"Not an option symbol: {symbol!r}")

    try:
        expiry = datetime.strptime("20" + match.group("date"), "%Y%m%d").date()
    except ValueError:
        raise ValueError(f"Bad expiration in option symbol: {symbol!r}")

    return OptionContract(
        underlying=match.group("root"),
        option_type=parse_option_type(match.group("type")),
        strike=Decimal(int(match.group("strike"))) / 1000,
        expiry=expiry,
    )


def parse_option_description(description: str) -> OptionContract:
    """Parse a free-text description of the form 'SYMBOL M/D/YYYY Call $Strike'."""
    match = _DESCRIPTION_RE.search(description or "")
    if not match:
        raise ValueError(f"No option contract in description: {description!r}")

    return OptionContract(
        underlying=match.group("symbol").upper(),
        option_type=parse_option_type(match.group("type")),
        strike=Decimal(match.group("strike").replace(",", "")),
        expiry=parse_us_date(match.group("date")),
    )


def parse_amount(value) -> Decimal:
    """Parse a currency amount into a signed Decimal.

    Handles "$1,234.50", "($70.04)" (negative), "-200.00",
    "1.22 cr" and "0.37 db" (debit is negative). Blank means zero.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))

    text = str(value).strip()
    if not text:
        return Decimal("0")

    sign = None
    suffix_match = _SUFFIX_RE.match(text)
    if suffix_match:
        text = suffix_match.group("number")
        sign = 1 if suffix_match.group("suffix").lower() == "cr" else -1

    text = text.replace("$", "").replace(",", "").replace(" ", "")
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Unparseable amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Unparseable amount: {value!r}")

    if negative:
        amount = -abs(amount)
    if sign is not None:
        amount = abs(amount) * sign
    return amount


def parse_quantity(value) -> int:
    """Parse a contract count; the sign is dropped (direction carries it)."""
    text = str(value if value is not None else "").strip().replace(",", "")
    if not text:
        raise ValueError("Missing quantity")
    try:
        quantity = abs(Decimal(text))
    except InvalidOperation:
        raise ValueError(f"Unparseable quantity: {value!r}")
    if quantity != quantity.to_integral_value() or quantity == 0:
        raise ValueError(f"Quantity must be a positive whole number: {value!r}")
    return int(quantity)


def parse_us_date(value: str) -> date:
    """Parse 'M/D/YYYY' (or ISO 'YYYY-MM-DD')."""
    text = (value or "").strip()
    for fmt in ("%m/%d/%Y", "%Y-%m-%d", "%m/%d/%y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unparseable date: {value!r}")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, tolerating 'Z' and '-0400' style offsets.

    The result is always naive, in the wall-clock time the export shows;
    offsets are dropped without conversion. Date-only values ('1/15/2025')
    become midnight of that day.
    """
    text = (value or "").strip()
    if not text:
        raise ValueError("Missing timestamp")

    iso = text.replace("Z", "+00:00")
    if "T" in iso or " " in iso.strip():
        iso = _COMPACT_OFFSET_RE.sub(r"\1:\2", iso)
    try:
        return datetime.fromisoformat(iso).replace(tzinfo=None)
    except ValueError:
        pass

    return datetime.combine(parse_us_date(text), datetime.min.time())
