# backend/campaign_guide/guidelines/services/prompt_builder.py
"""
프롬프트 생성 모듈
가이드라인 분석용 LLM 프롬프트 생성
"""

import json
import logging
from datetime import date
from typing import Optional, Sequence

from ..models import CampaignCategory
from ..schemas import CampaignAnalysis

logger = logging.getLogger(__name__)

GUIDELINE_ANALYSIS_PROMPT = """당신은 체험단 캠페인 가이드라인 분석 전문가입니다.

## 분석 과정 (Chain-of-Thought):

1. **문맥 파악**: 가이드라인 텍스트를 읽으며 어떤 플랫폼/사이트의 체험단인지, 어떤 구조인지 파악하세요.
2. **카테고리 식별**: 제품/서비스 카테고리를 다음 중에서만 선택하세요:
   - {categories}
3. **플랫폼 및 리뷰채널 추출**:
   - **플랫폼**: 가이드라인에서 명시된 플랫폼 (예: "레뷰", "강남맛집", "쿠팡")
   - **리뷰채널**: 리뷰를 작성해야 하는 채널 (예: "네이버블로그", "인스타그램")
4. **장소 정보 추출**:
   - **visitInfo**: 주소, 위치, 매장명 등 방문해야 할 장소
   - **phone**: 매장 전화, 고객센터 전화 등
5. **날짜 필드 식별**: 모집 기간(recruitPeriod), 선정자 발표일(reviewerAnnouncement),
   리뷰 등록 기간(reviewRegistrationPeriod), 기타 일정(deadlines)을 찾으세요.
6. **상대적 표현 계산**: "선정일 기준 +10일", "배송 후 7일" 같은 표현은 구체적인 날짜로 변환하세요.
7. **방문 리뷰 요구사항**: 네이버 예약 리뷰는 "naverReservation", 구글 리뷰는 "googleReview",
   그 외는 "other"로 contentRequirements.visitReviewTypes에 넣고, 기타 내용은 visitReviewOtherText에 적으세요.
8. **키워드**: 제목/본문에 넣어야 하는 키워드와 해시태그를 keywords 문자열 배열로 정리하세요.
9. **제공 내역**: rewardInfo에 제공 내역 설명(description), 포인트/금액(points, 숫자만),
   배송 방식(deliveryMethod), 제품 정보(productInfo)를 넣으세요.
10. **작성 조건**: 사진 수, 글자 수, 영상 길이처럼 수치가 있는 조건은
   contentRequirements.requirements에 {{"type": 종류, "label": 라벨, "value": 숫자, "description": 설명}}으로 넣으세요.
11. **미션 / 안내 사항**: 미션은 missions에 {{"title": 제목, "description": 설명, "examples": [예시, ...]}}로,
   필수 표기 문구는 requiredNotices, 중요 안내는 importantNotes, 주의/금지 사항은 warnings 문자열 배열로 넣으세요.
12. **가이드라인 요약**: guidelineDigest.summary에 한두 문장 요약을, sections에 원문의 항목을
   빠짐없이 {{"title": 섹션 제목, "items": [항목, ...]}} 형태로 옮기세요.
   미션, 필수 표기 문구, 중요 안내, 주의 사항도 각각 "미션", "필수 표기", "중요 안내", "주의 사항" 섹션으로 함께 옮기세요.
13. **JSON 생성**: 추출한 정보를 구조화된 JSON으로 반환하세요.

## 주의사항:
- 모든 날짜는 현재 기준({today})으로 YYYY-MM-DD 형식으로 변환하세요
- **카테고리**: 반드시 위의 목록 중 하나를 선택하세요. 없으면 "기타"로 설정하세요.
- **전화번호**: 숫자와 하이픈만 포함 (예: "02-1234-5678", "010-1234-5678")
- **포인트 필드**: "P", "포인트", "체험권" 등의 가치를 찾으세요. 숫자만 추출 (예: "15,000P" → 15000)
- 포인트/가격을 찾을 수 없으면 null로 설정하세요
- 숫자는 정수로 변환하세요
- 반드시 유효한 JSON 객체만 반환하세요

## 출력 JSON 스키마:
{schema}"""


def _join_options(options: Optional[Sequence[str]]) -> str:
    cleaned = [option.strip() for option in options or [] if option and option.strip()]
    return ", ".join(cleaned) if cleaned else "없음"


def build_guideline_prompt(
    guideline: str,
    *,
    platforms: Optional[Sequence[str]] = None,
    categories: Optional[Sequence[str]] = None,
    review_channels: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
) -> str:
    """사용자 옵션을 포함한 가이드라인 분석 프롬프트"""
    schema = json.dumps(CampaignAnalysis.model_json_schema(by_alias=True), ensure_ascii=False)
    base_prompt = GUIDELINE_ANALYSIS_PROMPT.format(
        categories=", ".join(category.value for category in CampaignCategory),
        today=(today or date.today()).isoformat(),
        schema=schema,
    )

    prompt = f"""{base_prompt}

## 사용자 정의 옵션 (이 목록에서만 선택하세요):
- **플랫폼**: {_join_options(platforms)}
- **카테고리**: {_join_options(categories)}
- **리뷰채널**: {_join_options(review_channels)}

반드시 위의 사용자 정의 옵션에서만 값을 선택하세요. 없으면 null로 설정하세요.

다음 캠페인 가이드라인을 분석하세요:

{guideline}"""

    logger.debug(f"Guideline prompt length: {len(prompt)} characters")
    return prompt
