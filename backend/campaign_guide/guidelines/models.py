# backend/campaign_guide/guidelines/models.py
from enum import Enum as PyEnum


class CampaignCategory(str, PyEnum):
    """체험단 캠페인 카테고리 (앱의 카테고리 선택지와 동일)"""
    FOOD = "맛집/식품"
    BEAUTY = "뷰티"
    LIVING = "생활/리빙"
    PARENTING = "출산/육아"
    KITCHEN = "주방/가전"
    PET = "반려동물"
    TRAVEL = "여행/레저"
    DATE = "데이트"
    WEDDING = "웨딩"
    CULTURE = "티켓/문화생활"
    DIGITAL = "디지털/전자기기"
    HEALTH = "건강/헬스"
    MOBILITY = "자동차/모빌리티"
    OFFICE = "문구/오피스"
    OTHER = "기타"


class VisitReviewType(str, PyEnum):
    """방문형 체험단에서 추가로 요구하는 리뷰 종류"""
    NAVER_RESERVATION = "naverReservation"
    GOOGLE_REVIEW = "googleReview"
    OTHER = "other"


class ParseStatus(str, PyEnum):
    CLEAN = "clean"          # 모델 응답이 그대로 스키마를 통과
    REPAIRED = "repaired"    # JSON 추출/복구 후 통과 (모델 품질 저하 신호)
    FAILED = "failed"


# 모델이 영문 키 대신 한글 라벨을 내보내는 경우
VISIT_REVIEW_LABELS = {
    "네이버 예약 리뷰": VisitReviewType.NAVER_RESERVATION,
    "네이버예약": VisitReviewType.NAVER_RESERVATION,
    "네이버 예약": VisitReviewType.NAVER_RESERVATION,
    "구글 리뷰": VisitReviewType.GOOGLE_REVIEW,
    "구글리뷰": VisitReviewType.GOOGLE_REVIEW,
    "기타": VisitReviewType.OTHER,
}
