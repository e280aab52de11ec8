# backend/campaign_guide/quota/schemas.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from ..models import CustomModel


class QuotaInfo(CustomModel):
    allowed: bool
    last_used_at: Optional[datetime] = Field(None, alias="lastUsedAt")
    next_available_at: Optional[datetime] = Field(None, alias="nextAvailableAt")
    used_count: int = Field(0, alias="usedCount")
    daily_limit: int = Field(..., alias="dailyLimit")


class QuotaStatus(CustomModel):
    guideline: QuotaInfo
    timezone: str = "Asia/Seoul"


class QuotaStatusResponse(CustomModel):
    success: bool = True
    data: QuotaStatus
