# backend/campaign_guide/guidelines/service.py
"""
가이드라인 분석 오케스트레이터

PARSING → NORMALIZING → RECONCILING 순서로 진행합니다.
- PARSING: 모델 응답 스키마 검증 (실패 시 JSON 추출 + 복구)
- NORMALIZING: 전화번호 / 키워드 / 요약 / 날짜 정규화
- RECONCILING: 비어있는 points / platform / phone을 정규식 보정값으로 채움 (모델 값 우선)
PARSING이 실패하면 채울 대상 레코드가 없으므로 SchemaViolation으로 종료합니다.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum as PyEnum
from typing import Optional, Sequence, Tuple

from ..models import SEOUL_TZ
from .exceptions import GuidelineAnalysisError, InvalidInput, SchemaViolation, UpstreamUnavailable
from .models import ParseStatus
from .schemas import CampaignAnalysis, GuidelineDigest, Period
from .services.fallback_extractor import FallbackFields, extract_fallback_fields
from .services.llm_client import ModelCaller, call_guideline_model
from .services.phone import is_canonical_phone, normalize_phone
from .services.prompt_builder import build_guideline_prompt
from .services.schema_repair import parse_model_response
from .services.text_normalizer import normalize_date_string, normalize_digest, normalize_items, normalize_keywords

logger = logging.getLogger(__name__)

RECONCILED_FIELDS = ("points", "platform", "phone")


class ReconcileState(str, PyEnum):
    PARSING = "PARSING"
    NORMALIZING = "NORMALIZING"
    RECONCILING = "RECONCILING"


@dataclass(frozen=True)
class GuidelineAnalysisResult:
    analysis: CampaignAnalysis
    status: ParseStatus
    filled_fields: Tuple[str, ...] = ()
    fallback: FallbackFields = field(default_factory=FallbackFields)


def ensure_guideline_text(guideline: Optional[str]) -> str:
    if not isinstance(guideline, str) or not guideline.strip():
        raise InvalidInput("가이드라인 텍스트가 필요합니다")
    return guideline


def _normalize_period(period: Period) -> Period:
    return Period(
        start=normalize_date_string(period.start),
        end=normalize_date_string(period.end),
    )


def normalize_analysis(analysis: CampaignAnalysis) -> CampaignAnalysis:
    """검증을 통과한 레코드에 정규화 규칙을 적용한 새 레코드"""
    points = analysis.points
    if points is None and analysis.reward_info.points is not None:
        # rewardInfo에만 금액이 있으면 모델 값으로 사용 (정규식 보정보다 우선)
        points = analysis.reward_info.points

    phone = analysis.phone
    if phone:
        phone = normalize_phone(phone)
        if not is_canonical_phone(phone):
            logger.info(f"Dropping non-canonical phone from model output: {analysis.phone!r}")
            phone = None

    digest = None
    if analysis.guideline_digest is not None:
        digest = normalize_digest(analysis.guideline_digest.model_dump())

    deadlines = tuple(
        deadline.model_copy(update={"date": normalize_date_string(deadline.date) or deadline.date})
        for deadline in analysis.deadlines
    )

    return analysis.model_copy(update={
        "points": points,
        "phone": phone,
        "keywords": tuple(normalize_keywords(analysis.keywords)),
        "guideline_digest": GuidelineDigest.model_validate(digest) if digest else None,
        "recruit_period": _normalize_period(analysis.recruit_period),
        "review_registration_period": _normalize_period(analysis.review_registration_period),
        "reviewer_announcement": normalize_date_string(analysis.reviewer_announcement),
        "deadlines": deadlines,
        "required_notices": tuple(normalize_items(analysis.required_notices)),
        "important_notes": tuple(normalize_items(analysis.important_notes)),
        "warnings": tuple(normalize_items(analysis.warnings)),
    })


def merge_fallback(
    analysis: CampaignAnalysis,
    fallback: FallbackFields,
) -> Tuple[CampaignAnalysis, Tuple[str, ...]]:
    """모델 값이 비어있는 필드만 보정값으로 채움"""
    updates = {}
    for name in RECONCILED_FIELDS:
        current = getattr(analysis, name)
        candidate = getattr(fallback, name)
        if current is None and candidate is not None:
            updates[name] = candidate
    if not updates:
        return analysis, ()
    return analysis.model_copy(update=updates), tuple(updates)


def reconcile_analysis(
    guideline: str,
    model_response: str,
    platforms: Sequence[str] = (),
) -> GuidelineAnalysisResult:
    """모델 응답 + 원문 → 최종 CampaignAnalysis (순수 함수)"""
    guideline = ensure_guideline_text(guideline)

    state = ReconcileState.PARSING
    # 정규식 보정은 모델 성공 여부와 무관하게 항상 수행
    fallback = extract_fallback_fields(guideline, platforms)
    outcome = parse_model_response(model_response)
    if not outcome.ok:
        logger.error(f"[{state.value}] Guideline analysis aborted: {len(outcome.issues)} schema issues")
        raise SchemaViolation(outcome.issues, fallback=fallback)
    if outcome.status == ParseStatus.REPAIRED:
        logger.warning(f"[{state.value}] Model response needed JSON repair ({len(outcome.issues)} first-pass issues)")

    state = ReconcileState.NORMALIZING
    analysis = normalize_analysis(outcome.analysis)

    state = ReconcileState.RECONCILING
    analysis, filled_fields = merge_fallback(analysis, fallback)
    if filled_fields:
        logger.info(f"[{state.value}] Filled from guideline text: {', '.join(filled_fields)}")

    return GuidelineAnalysisResult(
        analysis=analysis,
        status=outcome.status,
        filled_fields=filled_fields,
        fallback=fallback,
    )


def today_in_seoul() -> date:
    return datetime.now(SEOUL_TZ).date()


async def analyze_guideline(
    guideline: Optional[str],
    *,
    platforms: Sequence[str] = (),
    categories: Sequence[str] = (),
    review_channels: Sequence[str] = (),
    call_model: ModelCaller = call_guideline_model,
    today: Optional[date] = None,
) -> GuidelineAnalysisResult:
    """
    가이드라인 분석 전체 흐름.

    빈 가이드라인은 모델 호출 전에 InvalidInput, 모델 호출 실패/빈 응답은
    UpstreamUnavailable, 복구 후에도 검증 실패면 SchemaViolation.
    """
    text = ensure_guideline_text(guideline)
    prompt = build_guideline_prompt(
        text,
        platforms=platforms,
        categories=categories,
        review_channels=review_channels,
        today=today or today_in_seoul(),
    )

    logger.info(f"🔍 Analyzing guideline ({len(text)} chars, {len(platforms)} platform candidates)")
    try:
        response_text = await call_model(prompt)
    except GuidelineAnalysisError:
        raise
    except Exception as exc:
        raise UpstreamUnavailable(f"가이드라인 분석 모델 호출에 실패했습니다: {exc}") from exc

    if not response_text or not response_text.strip():
        raise UpstreamUnavailable("가이드라인 분석 모델이 빈 응답을 반환했습니다")

    return reconcile_analysis(text, response_text, platforms)
