"""
Pipeline Orchestrator — composes the stages into a single ``reconstruct()`` call.

    raw rows -> normalize_rows -> group -> PositionLedger -> aggregate_all
             -> (optional) rollup_by_group

Each call builds its own ledger, so concurrent calls never share state.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from reconstruction.brokers.detection import BrokerKind
from reconstruction.models.trade_models import OrderGroup, Trade
from reconstruction.pipeline.leg_normalizer import SkippedRow, account_label, normalize_rows
from reconstruction.pipeline.order_grouper import build_strategy_index, group
from reconstruction.pipeline.position_ledger import PositionLedger
from reconstruction.pipeline.trade_aggregator import aggregate_all, rollup_by_group

logger = logging.getLogger(__name__)


@dataclass
class ReconstructionResult:
    """Trades plus the diagnostics a caller needs to judge their completeness."""
    broker: BrokerKind
    trades: List[Trade] = field(default_factory=list)
    groups: List[OrderGroup] = field(default_factory=list)
    skipped_rows: List[SkippedRow] = field(default_factory=list)
    filtered_rows: int = 0
    incomplete_trades: int = 0

    @property
    def has_partial_pnl(self) -> bool:
        """P&L totals understate or overstate reality when this is set."""
        return bool(self.skipped_rows) or self.incomplete_trades > 0


def reconstruct(
    rows: Sequence[Mapping],
    broker=None,
    account: Optional[str] = None,
    rollup: bool = False,
) -> ReconstructionResult:
    """Reconstruct trades from one broker export.

    Parameters:
        rows: Raw rows as field maps, in the order the broker exported them
        broker: BrokerKind or its name; detected from the first row when None
        account: Label stamped on every trade; defaults to the broker's name
        rollup: Merge per-leg trades of one order into strategy-level trades

    Returns:
        ReconstructionResult
    """
    normalized = normalize_rows(rows, broker)
    account = account or account_label(normalized.broker)

    # ── Stage 2: group opening legs and classify each order ───────────
    groups = group(normalized.legs)
    index = build_strategy_index(groups)

    # ── Stage 3: FIFO matching ────────────────────────────────────────
    ledger = PositionLedger(index)
    events = ledger.process(normalized.legs)

    # ── Stage 4: events -> trades ─────────────────────────────────────
    trades = aggregate_all(events, account)
    if rollup:
        trades = rollup_by_group(trades)

    result = ReconstructionResult(
        broker=normalized.broker,
        trades=trades,
        groups=groups,
        skipped_rows=normalized.skipped,
        filtered_rows=normalized.filtered,
        incomplete_trades=sum(1 for t in trades if t.incomplete),
    )

    logger.info(
        "Reconstructed %d trades (%d open, %d incomplete) from %d legs in %d orders",
        len(trades), sum(1 for t in trades if t.is_open), result.incomplete_trades,
        len(normalized.legs), len(groups),
    )
    if result.has_partial_pnl:
        logger.warning(
            "P&L is partial: %d skipped rows, %d incomplete trades",
            len(result.skipped_rows), result.incomplete_trades,
        )
    if ledger.discarded:
        logger.info("Dropped %d expiration/assignment/exercise legs with no open lot", len(ledger.discarded))

    return result
