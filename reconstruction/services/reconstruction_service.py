"""Request validation and response shaping for the reconstruction API."""

from collections import Counter
from typing import Dict, List, Optional

from loguru import logger

from reconstruction.brokers.detection import detect_broker, parse_broker_kind
from reconstruction.config import Settings
from reconstruction.errors import ReconstructionError
from reconstruction.models.trade_models import Trade
from reconstruction.pipeline.orchestrator import ReconstructionResult, reconstruct


class EmptyInputError(ReconstructionError):
    """The request carried no rows."""


class TooManyRowsError(ReconstructionError):
    """The request exceeds the configured RECON_MAX_ROWS limit."""


def strategy_counts(trades: List[Trade]) -> Dict[str, int]:
    """Number of trades per strategy label, most common first."""
    return dict(Counter(t.strategy.value for t in trades).most_common())


def run_reconstruction(
    settings: Settings,
    rows: List[dict],
    broker: Optional[str] = None,
    account: Optional[str] = None,
    rollup: bool = False,
) -> ReconstructionResult:
    """Validate the batch against settings and run the pipeline.

    The account label falls back to the configured label for the detected
    broker. Raises EmptyInputError / TooManyRowsError / UnsupportedBrokerError.
    """
    if not rows:
        raise EmptyInputError("No rows to reconstruct")
    if settings.max_rows and len(rows) > settings.max_rows:
        raise TooManyRowsError(
            f"{len(rows)} rows exceeds the limit of {settings.max_rows}"
        )

    kind = parse_broker_kind(broker) if broker else detect_broker(rows[0].keys())
    account = account or settings.account_for(kind.value) or None

    logger.info(f"Reconstructing {len(rows)} {kind.value} rows (rollup={rollup})")
    result = reconstruct(rows, broker=kind, account=account, rollup=rollup)

    if result.has_partial_pnl:
        logger.warning(
            f"Partial P&L for {result.broker.value}: "
            f"{len(result.skipped_rows)} skipped rows, {result.incomplete_trades} incomplete trades"
        )
    logger.info(f"Returning {len(result.trades)} trades for {result.broker.value}")
    return result


def to_response(result: ReconstructionResult) -> dict:
    return {
        "broker": result.broker.value,
        "trades": [t.to_record() for t in result.trades],
        "skipped_rows": [
            {"row_index": s.row_index, "reason": s.reason} for s in result.skipped_rows
        ],
        "filtered_rows": result.filtered_rows,
        "incomplete_trades": result.incomplete_trades,
        "has_partial_pnl": result.has_partial_pnl,
        "strategy_counts": strategy_counts(result.trades),
    }
