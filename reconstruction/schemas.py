"""Pydantic request/response models for the reconstruction API."""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class ReconstructRequest(BaseModel):
    rows: List[Dict[str, Any]]
    broker: Optional[str] = None
    account: Optional[str] = None
    rollup: bool = False


class TradeOut(BaseModel):
    Symbol: str
    Type: str
    Strategy: str
    Strike: float
    Strikes: List[float]
    Expiry: str
    Volume: int
    Entry: str
    Exit: Optional[str] = None
    Debit: float
    Credit: float
    Account: str
    Incomplete: bool = False
    GroupId: Optional[str] = None
    ClosingType: Optional[str] = None


class SkippedRowOut(BaseModel):
    row_index: int
    reason: str


class ReconstructionResponse(BaseModel):
    broker: str
    trades: List[TradeOut]
    skipped_rows: List[SkippedRowOut]
    filtered_rows: int
    incomplete_trades: int
    has_partial_pnl: bool
    strategy_counts: Dict[str, int]
