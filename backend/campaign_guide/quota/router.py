# backend/campaign_guide/quota/router.py
from fastapi import APIRouter, Query

from ..database import SessionDep
from . import service
from .schemas import QuotaStatusResponse

router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("/quota-status", response_model=QuotaStatusResponse)
async def quota_status(db: SessionDep, user_id: str = Query(..., alias="userId", min_length=1)):
    status = await service.get_quota_status(db, user_id)
    return QuotaStatusResponse(data=status)
