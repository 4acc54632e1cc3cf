"""
Admin Schemas

Pydantic schemas for uploads, the dashboard, the history view and the full
reset.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from lunarlink.schemas.code import Batch, Counters, HistoryEntry, SpeedTier


class UploadPreviewOut(BaseModel):
    filename: str
    codes_found: int
    message: str


class UploadOut(BaseModel):
    batch_name: str
    speed: SpeedTier
    inserted: int
    message: str


class LowStockAlert(BaseModel):
    speed: SpeedTier
    label: str
    count: int
    level: str = Field(..., description="critical or warning")


class DashboardOut(BaseModel):
    total_available: int
    codes_used: int
    total_uploaded: int
    batches: int
    usage_rate: float = Field(..., description="accept / (accept + reject), 0 when there were no clicks")
    success_rate: int = Field(..., description="usage_rate as a rounded percentage")
    counts: Dict[str, int]
    alerts: List[LowStockAlert]
    recent_batches: List[Batch]
    counters: Counters


class HistoryOut(BaseModel):
    entries: List[HistoryEntry]
    counts: Dict[str, int] = Field(..., description="Entries per tier in the full history, plus total")
    filtered: int


class ClearAllRequest(BaseModel):
    """Both flags must be true; the reset cannot be undone."""
    confirm: bool = False
    final_confirm: bool = False


class MessageOut(BaseModel):
    message: str
    detail: Optional[str] = None
