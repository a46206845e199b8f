"""Broker format detection from a transaction export's header row."""

import logging
from enum import Enum
from typing import Iterable

from reconstruction.errors import UnsupportedBrokerError

logger = logging.getLogger(__name__)


class BrokerKind(Enum):
    ROBINHOOD = "robinhood"
    TASTYTRADE = "tastytrade"
    CANONICAL = "canonical"   # rows produced by Leg.to_record()


_ROBINHOOD_HEADERS = frozenset({"activity date", "trans code", "instrument"})
_TASTY_ORDER_HEADER = "order #"
_CANONICAL_HEADERS = frozenset({"leg_id", "direction", "side", "amount", "timestamp"})


def detect_broker(headers: Iterable[str]) -> BrokerKind:
    """Pick the broker format from a header set.

    An explicit multi-leg order-linkage column ('Order #') means tastytrade;
    the activity-date / trans-code / instrument triple means Robinhood.
    """
    headers = [h for h in headers if h is not None]
    normalized = {str(h).strip().lower() for h in headers}

    if _TASTY_ORDER_HEADER in normalized:
        kind = BrokerKind.TASTYTRADE
    elif _ROBINHOOD_HEADERS <= normalized:
        kind = BrokerKind.ROBINHOOD
    elif _CANONICAL_HEADERS <= normalized:
        kind = BrokerKind.CANONICAL
    else:
        raise UnsupportedBrokerError(headers)

    logger.debug("Detected broker format %s from %d headers", kind.value, len(normalized))
    return kind


def parse_broker_kind(value) -> BrokerKind:
    """Accept a BrokerKind or its string value ('robinhood', 'Tastytrade', ...)."""
    if isinstance(value, BrokerKind):
        return value
    text = str(value or "").strip().lower()
    if text in ("tasty", "tastyworks"):
        text = BrokerKind.TASTYTRADE.value
    try:
        return BrokerKind(text)
    except ValueError:
        raise UnsupportedBrokerError([str(value)])
