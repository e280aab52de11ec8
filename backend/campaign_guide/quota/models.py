# backend/campaign_guide/quota/models.py
from sqlalchemy import Column, Date, DateTime, Integer, String, UniqueConstraint
from ..database import Base


class GuidelineUsage(Base):
    """사용자별 / Asia/Seoul 날짜별 가이드라인 분석 사용 횟수"""
    __tablename__ = "guideline_usage"
    __table_args__ = (
        UniqueConstraint("user_id", "usage_date", name="uq_guideline_usage_user_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    usage_date = Column(Date, nullable=False)                  # Asia/Seoul 기준 날짜
    count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"GuidelineUsage(user_id={self.user_id!r}, usage_date={self.usage_date}, count={self.count})"
