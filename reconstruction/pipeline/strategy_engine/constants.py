"""Strategy registry: metadata for every strategy the engine can return."""

from reconstruction.models.trade_models import Strategy

from .types import StrategyDef

STRATEGIES: dict = {
    # -- Credit strategies --
    Strategy.SHORT_CALL:       StrategyDef(Strategy.SHORT_CALL,       "bearish", "credit", 1, "single"),
    Strategy.SHORT_PUT:        StrategyDef(Strategy.SHORT_PUT,        "bullish", "credit", 1, "single"),
    Strategy.BEAR_CALL_SPREAD: StrategyDef(Strategy.BEAR_CALL_SPREAD, "bearish", "credit", 2, "vertical"),
    Strategy.BULL_PUT_SPREAD:  StrategyDef(Strategy.BULL_PUT_SPREAD,  "bullish", "credit", 2, "vertical"),
    Strategy.IRON_CONDOR:      StrategyDef(Strategy.IRON_CONDOR,      "neutral", "credit", 4, "multi"),
    # -- Debit strategies --
    Strategy.LONG_CALL:        StrategyDef(Strategy.LONG_CALL,        "bullish", "debit",  1, "single"),
    Strategy.LONG_PUT:         StrategyDef(Strategy.LONG_PUT,         "bearish", "debit",  1, "single"),
    Strategy.BULL_CALL_SPREAD: StrategyDef(Strategy.BULL_CALL_SPREAD, "bullish", "debit",  2, "vertical"),
    Strategy.BEAR_PUT_SPREAD:  StrategyDef(Strategy.BEAR_PUT_SPREAD,  "bearish", "debit",  2, "vertical"),
    # -- Side-dependent (long = debit, short = credit) --
    Strategy.STRADDLE:         StrategyDef(Strategy.STRADDLE,         "neutral", None,     2, "multi"),
    Strategy.STRANGLE:         StrategyDef(Strategy.STRANGLE,         "neutral", None,     2, "multi"),
    # -- Fallback --
    Strategy.CUSTOM:           StrategyDef(Strategy.CUSTOM,           None,      None,     0, "custom"),
}
