from pydantic import BaseModel, Field
from typing import List, Optional

from lunarlink.schemas.code import SpeedTier


class CodeRequest(BaseModel):
    speed: SpeedTier = Field(..., description="Speed tier to draw a code from")


class IssuanceOut(BaseModel):
    status: str = Field(..., description="idle, code_shown, accepted, exhausted or retry_limit_reached")
    code: Optional[str] = Field(None, description="Code currently shown to the user")
    speed: Optional[SpeedTier] = None
    speed_label: Optional[str] = None
    retry_count: int = 0
    retries_left: int = 0
    message: Optional[str] = None
    reset_after_seconds: Optional[float] = Field(
        None, description="For final outcomes: how long to show the result before returning to idle"
    )


class TierAvailability(BaseModel):
    speed: SpeedTier
    label: str
    count: int
    low: bool
    available: bool


class AvailabilityOut(BaseModel):
    tiers: List[TierAvailability]
