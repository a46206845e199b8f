"""Data types for the strategy engine."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from reconstruction.models.trade_models import OptionType, Side, Strategy


@dataclass(frozen=True)
class ShapeLeg:
    """One structural leg: fills of the same contract and side are merged."""
    option_type: OptionType
    side: Optional[Side]
    strike: Decimal
    quantity: int

    @property
    def is_long(self) -> bool:
        return self.side is Side.BUY

    @property
    def is_short(self) -> bool:
        return self.side is Side.SELL


@dataclass(frozen=True)
class LegShape:
    """Shape descriptor the recognizer dispatches on."""
    calls: Tuple[ShapeLeg, ...]
    puts: Tuple[ShapeLeg, ...]

    @property
    def leg_count(self) -> int:
        return len(self.calls) + len(self.puts)

    @property
    def legs(self) -> Tuple[ShapeLeg, ...]:
        return self.calls + self.puts

    @property
    def key(self) -> Tuple[int, int, int]:
        """(leg count, call count, put count)."""
        return (self.leg_count, len(self.calls), len(self.puts))


@dataclass(frozen=True)
class StrategyDef:
    """Registry entry defining a strategy's metadata."""
    strategy: Strategy
    direction: Optional[str]     # "bullish", "bearish", "neutral"
    credit_debit: Optional[str]  # "credit", "debit", None when side-dependent
    leg_count: int
    category: str                # "single", "vertical", "multi", "custom"


@dataclass(frozen=True)
class StrategyResult:
    """Result of strategy recognition."""
    strategy: Strategy
    direction: Optional[str]
    credit_debit: Optional[str]
    leg_count: int
    confidence: float            # 1.0 recognized, 0.0 Custom

    @property
    def name(self) -> str:
        return self.strategy.value
