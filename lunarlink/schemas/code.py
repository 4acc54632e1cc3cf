"""
Code Schemas

Pydantic models for codes, usage history, upload batches and the counters
singleton. These use internal field names; the stored column names are
translated in ``lunarlink.db.mappers``.
"""

from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class SpeedTier(str, Enum):
    MBPS_16 = "16mbps"
    MBPS_20 = "20mbps"
    MBPS_50 = "50mbps"

    @property
    def label(self) -> str:
        return TIER_LABELS[self]


TIER_LABELS = {
    SpeedTier.MBPS_16: "16 Mbps",
    SpeedTier.MBPS_20: "20 Mbps",
    SpeedTier.MBPS_50: "50 Mbps",
}


class CodeStatus(str, Enum):
    UNUSED = "unused"
    USED = "used"


class Code(BaseModel):
    id: Optional[int] = None
    value: str
    speed_tier: SpeedTier
    batch_name: str
    status: CodeStatus = CodeStatus.UNUSED
    created_at: Optional[datetime] = None
    used_at: Optional[datetime] = None


class HistoryEntry(BaseModel):
    id: Optional[int] = None
    code_value: str
    speed_tier: SpeedTier
    batch_name: str
    used_at: Optional[datetime] = None


class Batch(BaseModel):
    id: Optional[int] = None
    name: str
    speed_tier: SpeedTier
    code_count: int = 0
    uploaded_at: Optional[datetime] = None


class Counters(BaseModel):
    """
    Point-incremented usage summary.

    Each field only grows until a full reset; it is not recomputed from the
    code, history or batch tables.
    """
    total_uploaded: int = Field(0, description="Codes uploaded across all batches")
    codes_used: int = Field(0, description="Codes archived after a successful accept")
    accept_count: int = Field(0, description="Times a user confirmed a code worked")
    reject_count: int = Field(0, description="Times a user rejected a code")
    batches_uploaded: int = Field(0, description="Number of successful uploads")
    last_updated: Optional[datetime] = None
