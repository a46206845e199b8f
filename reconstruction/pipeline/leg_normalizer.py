"""
Leg Normalizer — Stage 1 of the reconstruction pipeline.

Dispatches raw broker rows to the matching adapter and collects canonical
``Leg`` objects. Non-trade rows (transfers, interest, fees, dividends) are
filtered out; rows that look like option trades but fail to parse are
skipped with a warning so a single malformed row never aborts the batch.

All functions are pure apart from logging.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Sequence

from reconstruction.brokers import canonical_adapter, robinhood_adapter, tasty_adapter
from reconstruction.brokers.detection import BrokerKind, detect_broker, parse_broker_kind
from reconstruction.errors import NormalizationError
from reconstruction.models.trade_models import Leg

logger = logging.getLogger(__name__)

__all__ = [
    "SkippedRow",
    "NormalizationResult",
    "account_label",
    "normalize",
    "normalize_rows",
]

_ADAPTERS = {
    BrokerKind.ROBINHOOD: robinhood_adapter,
    BrokerKind.TASTYTRADE: tasty_adapter,
    BrokerKind.CANONICAL: canonical_adapter,
}


@dataclass(frozen=True)
class SkippedRow:
    row_index: int
    reason: str


@dataclass
class NormalizationResult:
    """Output of normalize_rows(): legs in chronological file order + diagnostics."""
    broker: BrokerKind
    legs: List[Leg] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)
    filtered: int = 0


def account_label(broker_kind) -> str:
    """Default account name stamped on trades from this broker."""
    return _ADAPTERS[parse_broker_kind(broker_kind)].ACCOUNT_LABEL


def normalize(raw_record: Mapping, broker_kind, row_index: int = 0) -> Leg:
    """Convert one raw row into a Leg.

    Raises NormalizationError for rows that are not option trades or whose
    option identifier, date or amount cannot be parsed.
    """
    adapter = _ADAPTERS[parse_broker_kind(broker_kind)]
    if not adapter.is_trade_row(raw_record):
        raise NormalizationError("not an option trade row", row_index)
    return adapter.to_leg(raw_record, row_index)


def normalize_rows(
    rows: Sequence[Mapping],
    broker_kind=None,
) -> NormalizationResult:
    """Normalize a whole export.

    When ``broker_kind`` is omitted the format is detected from the first
    row's keys. Rows of newest-first exports are walked in reverse so the
    returned legs are in chronological file order; each leg's id still
    refers to its position in ``rows``.
    """
    if broker_kind is None:
        first = next((r for r in rows if isinstance(r, Mapping)), None)
        broker = detect_broker(first.keys() if first else [])
    else:
        broker = parse_broker_kind(broker_kind)

    adapter = _ADAPTERS[broker]
    result = NormalizationResult(broker=broker)

    indexed = list(enumerate(rows))
    if adapter.NEWEST_FIRST:
        indexed.reverse()

    for row_index, row in indexed:
        if not isinstance(row, Mapping):
            result.skipped.append(SkippedRow(row_index, "row is not a field map"))
            logger.warning("Skipping row %d: not a field map", row_index)
            continue

        if not adapter.is_trade_row(row):
            result.filtered += 1
            continue

        try:
            leg = adapter.to_leg(row, row_index)
        except NormalizationError as e:
            result.skipped.append(SkippedRow(row_index, e.reason))
            logger.warning("Skipping %s row %d: %s", broker.value, row_index, e.reason)
            continue

        result.legs.append(leg)

    logger.info(
        "Normalized %d legs from %d %s rows (%d filtered, %d skipped)",
        len(result.legs), len(indexed), broker.value,
        result.filtered, len(result.skipped),
    )
    return result
