"""Strategy Engine — order-shape-based strategy classification.

Public API:
    classify(legs) -> Strategy
    recognize(legs) -> StrategyResult
    legs_to_shape(legs) -> LegShape
"""

from .recognizer import classify, classify_unmatched_close, recognize
from .adapters import legs_to_shape
from .types import LegShape, ShapeLeg, StrategyResult, StrategyDef
from .constants import STRATEGIES

__all__ = [
    "classify", "classify_unmatched_close", "recognize", "legs_to_shape",
    "LegShape", "ShapeLeg", "StrategyResult", "StrategyDef", "STRATEGIES",
]
