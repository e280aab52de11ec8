# backend/campaign_guide/quota/service.py
"""
가이드라인 분석 일일 사용량 게이트 (Asia/Seoul 하루 기준)

확인과 증가를 하나의 조건부 UPDATE로 처리하므로 같은 사용자의 요청이
동시에 들어와도 둘 다 통과하지 않습니다.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models import SEOUL_TZ
from .models import GuidelineUsage
from .schemas import QuotaInfo, QuotaStatus

logger = logging.getLogger(__name__)

QUOTA_BLOCKED_MESSAGE = "가이드라인 분석은 하루 {limit}회만 가능합니다. 내일 다시 시도해주세요."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite는 tz 정보 없이 돌려주므로 UTC로 간주
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def seoul_date(now: datetime) -> date:
    return _as_utc(now).astimezone(SEOUL_TZ).date()


def kst_day_range_utc(now: datetime) -> Tuple[datetime, datetime]:
    """now가 속한 Asia/Seoul 하루의 [시작, 끝)을 UTC로"""
    start_kst = datetime.combine(seoul_date(now), time.min, tzinfo=SEOUL_TZ)
    end_kst = start_kst + timedelta(days=1)
    return start_kst.astimezone(timezone.utc), end_kst.astimezone(timezone.utc)


def _daily_limit(limit: Optional[int]) -> int:
    return settings.GUIDELINE_DAILY_LIMIT if limit is None else limit


async def try_consume(
    db: AsyncSession,
    user_id: str,
    *,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> bool:
    """오늘 사용 가능하면 1회 차감하고 True, 한도를 다 썼으면 False"""
    limit = _daily_limit(limit)
    now = _as_utc(now) or _utcnow()
    usage_date = seoul_date(now)
    if limit <= 0:
        return False

    conditional_increment = (
        update(GuidelineUsage)
        .where(
            GuidelineUsage.user_id == user_id,
            GuidelineUsage.usage_date == usage_date,
            GuidelineUsage.count < limit,
        )
        .values(count=GuidelineUsage.count + 1, last_used_at=now)
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(conditional_increment)
    if result.rowcount == 1:
        await db.commit()
        return True

    existing = await db.execute(
        select(GuidelineUsage.id).where(
            GuidelineUsage.user_id == user_id,
            GuidelineUsage.usage_date == usage_date,
        )
    )
    if existing.scalar_one_or_none() is not None:
        await db.rollback()
        logger.info(f"Guideline quota exhausted for user={user_id} date={usage_date}")
        return False

    # 오늘 첫 사용
    db.add(GuidelineUsage(user_id=user_id, usage_date=usage_date, count=1, last_used_at=now))
    try:
        await db.commit()
        return True
    except IntegrityError:
        # 다른 요청이 먼저 행을 만든 경우: 조건부 증가만 다시 시도
        await db.rollback()
        result = await db.execute(conditional_increment)
        allowed = result.rowcount == 1
        await db.commit()
        return allowed


async def release(
    db: AsyncSession,
    user_id: str,
    *,
    now: Optional[datetime] = None,
) -> None:
    """분석이 실패했을 때 차감했던 1회를 되돌림"""
    now = _as_utc(now) or _utcnow()
    await db.execute(
        update(GuidelineUsage)
        .where(
            GuidelineUsage.user_id == user_id,
            GuidelineUsage.usage_date == seoul_date(now),
            GuidelineUsage.count > 0,
        )
        .values(count=GuidelineUsage.count - 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def get_quota_status(
    db: AsyncSession,
    user_id: str,
    *,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> QuotaStatus:
    limit = _daily_limit(limit)
    now = _as_utc(now) or _utcnow()

    today_row = (
        await db.execute(
            select(GuidelineUsage).where(
                GuidelineUsage.user_id == user_id,
                GuidelineUsage.usage_date == seoul_date(now),
            )
        )
    ).scalar_one_or_none()
    last_used_at = (
        await db.execute(
            select(GuidelineUsage.last_used_at)
            .where(GuidelineUsage.user_id == user_id, GuidelineUsage.last_used_at.is_not(None))
            .order_by(GuidelineUsage.last_used_at.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    used_count = today_row.count if today_row else 0
    allowed = used_count < limit
    _, end_utc = kst_day_range_utc(now)

    return QuotaStatus(
        guideline=QuotaInfo(
            allowed=allowed,
            last_used_at=_as_utc(last_used_at),
            next_available_at=None if allowed else end_utc,
            used_count=used_count,
            daily_limit=limit,
        ),
    )
