# backend/campaign_guide/guidelines/schemas.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional, Tuple

from pydantic import ConfigDict, Field, ValidationInfo, field_validator, model_serializer, model_validator
from pydantic.alias_generators import to_camel

from ..models import CustomModel
from .models import CampaignCategory, ParseStatus, VisitReviewType, VISIT_REVIEW_LABELS
from .services.amount_parser import parse_amount_range
from .services.text_normalizer import (
    collapse_whitespace,
    normalize_digest,
    normalize_items,
    normalize_optional_text,
)

CATEGORY_VALUES = {category.value for category in CampaignCategory}


def is_lenient(info: ValidationInfo) -> bool:
    """복구 경로(2차 검증)에서만 필드 단위 강제 변환을 허용"""
    return bool(info.context and info.context.get("lenient"))


def coerce_non_negative_int(value: Any, info: ValidationInfo) -> Any:
    """
    정수 필드(points, rewardInfo.points, requirements.value) 공통 변환.
    1차 검증은 bool만 거부하고 pydantic에 맡기며,
    2차 검증에서는 "15,000P" / 15000.4 / "1~2만" 같은 값을 정수로 바꾸고 음수/해석 불가는 None.
    """
    if value is None:
        return None
    if not is_lenient(info):
        if isinstance(value, bool):
            raise ValueError("value must be an integer")
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    elif isinstance(value, str):
        value = parse_amount_range(value)
    elif not isinstance(value, int):
        return None
    if value is None or value < 0:
        return None
    return value


def _text_list(value: Any, info: ValidationInfo) -> Any:
    if value is None:
        return ()
    if is_lenient(info):
        return normalize_items(value)
    return value


def _scalar_text(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _keyword_text(item: Any) -> Optional[str]:
    """
    키워드 항목 하나를 문자열로.
    - "string" → "string"
    - ["#a", "#b"] → "#a / #b"
    - {"name": ..., "description": ...} → name
    """
    if isinstance(item, str):
        return item
    if isinstance(item, (list, tuple)):
        parts = [str(part).strip() for part in item if isinstance(part, (str, int, float)) and str(part).strip()]
        return " / ".join(parts) or None
    if isinstance(item, dict):
        for key in ("name", "keyword", "text"):
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None
    if isinstance(item, (int, float)) and not isinstance(item, bool):
        return str(item)
    return None


class CampaignModel(CustomModel):
    """LLM 응답을 담는 스키마 공통 설정 (camelCase 별칭, 불변, 모르는 필드는 무시)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Period(CampaignModel):
    start: Optional[str] = None
    end: Optional[str] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _sentinel_to_none(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
        if isinstance(value, str):
            return normalize_optional_text(value)
        return value


class Deadline(CampaignModel):
    label: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return "" if value is None else value


class ContentRequirement(CampaignModel):
    """수치형 작성 조건 (예: {"type": "photo", "label": "사진", "value": 15, "description": "15장 이상"})"""
    type: str = ""
    label: str = Field(..., min_length=1)
    value: Optional[int] = Field(None, ge=0)
    description: str = ""

    @field_validator("type", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
            if not isinstance(value, str):
                return ""
        return "" if value is None else value

    @field_validator("label", mode="before")
    @classmethod
    def _strip_label(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value, info: ValidationInfo):
        return coerce_non_negative_int(value, info)


class ContentRequirements(CampaignModel):
    visit_review_types: Tuple[VisitReviewType, ...] = ()
    visit_review_other_text: Optional[str] = None
    requirements: Tuple[ContentRequirement, ...] = ()

    @field_validator("requirements", mode="before")
    @classmethod
    def _coerce_requirements(cls, value, info: ValidationInfo):
        if value is None:
            return ()
        if not is_lenient(info) or not isinstance(value, list):
            return value
        # 라벨 없는 항목은 버림
        return [
            item for item in value
            if isinstance(item, dict) and normalize_optional_text(_scalar_text(item.get("label")))
        ]

    @field_validator("visit_review_types", mode="before")
    @classmethod
    def _collect_types(cls, value, info: ValidationInfo):
        if value is None:
            return ()
        lenient = is_lenient(info)
        if lenient and isinstance(value, dict):
            # 체크리스트 형태 {"naverReservation": true, "googleReview": false}
            value = [key for key, checked in value.items() if checked]
        elif lenient and isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            return value

        resolved = set()
        for item in value:
            member = _resolve_visit_review_type(item, lenient)
            if member is None:
                if lenient:
                    continue
                raise ValueError(f"unknown visit review type: {item!r}")
            resolved.add(member)
        # 집합 의미: 중복 제거 + 선언 순서로 고정
        return tuple(member for member in VisitReviewType if member in resolved)

    @field_validator("visit_review_other_text", mode="before")
    @classmethod
    def _blank_other_text(cls, value):
        if isinstance(value, str):
            return normalize_optional_text(value)
        return value


def _resolve_visit_review_type(item: Any, lenient: bool) -> Optional[VisitReviewType]:
    if isinstance(item, VisitReviewType):
        return item
    if not isinstance(item, str):
        return None
    try:
        return VisitReviewType(item.strip())
    except ValueError:
        if lenient:
            return VISIT_REVIEW_LABELS.get(collapse_whitespace(item))
        return None


class DigestSection(CampaignModel):
    title: str
    items: Tuple[str, ...] = Field(..., min_length=1)


class GuidelineDigest(CampaignModel):
    summary: str = ""
    sections: Tuple[DigestSection, ...] = ()

    @field_validator("summary", mode="before")
    @classmethod
    def _none_summary(cls, value):
        return "" if value is None else value

    @field_validator("sections", mode="before")
    @classmethod
    def _none_sections(cls, value):
        return () if value is None else value


class RewardInfo(CampaignModel):
    """제공 내역 (설명 / 포인트 / 배송 방식 / 제품 정보)"""
    description: Optional[str] = None
    points: Optional[int] = Field(None, ge=0)
    delivery_method: Optional[str] = None
    product_info: Optional[str] = None

    @field_validator("description", "delivery_method", "product_info", mode="before")
    @classmethod
    def _blank_to_none(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
        if isinstance(value, str):
            return normalize_optional_text(value)
        return value

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, value, info: ValidationInfo):
        return coerce_non_negative_int(value, info)


class Mission(CampaignModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    examples: Tuple[str, ...] = ()

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
            if not isinstance(value, (str, type(None))):
                return None
        if isinstance(value, str):
            return normalize_optional_text(value)
        return value

    @field_validator("examples", mode="before")
    @classmethod
    def _coerce_examples(cls, value, info: ValidationInfo):
        return _text_list(value, info)


class CampaignAnalysis(CampaignModel):
    """가이드라인 분석 결과 (정규화/보정이 끝난 최종 레코드)"""
    title: str = Field(..., min_length=1)
    points: Optional[int] = Field(None, ge=0)
    platform: Optional[str] = None
    category: Optional[str] = None
    review_channel: Optional[str] = None
    visit_info: Optional[str] = None
    phone: Optional[str] = None
    recruit_period: Period = Field(default_factory=Period)
    reviewer_announcement: Optional[str] = None
    review_registration_period: Period = Field(default_factory=Period)
    deadlines: Tuple[Deadline, ...] = ()
    content_requirements: ContentRequirements = Field(default_factory=ContentRequirements)
    reward_info: RewardInfo = Field(default_factory=RewardInfo)
    missions: Tuple[Mission, ...] = ()
    required_notices: Tuple[str, ...] = ()
    important_notes: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    guideline_digest: Optional[GuidelineDigest] = None

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_keywords(cls, data):
        """contentRequirements.titleKeywords/bodyKeywords 형식을 keywords로 합침"""
        if not isinstance(data, dict) or data.get("keywords"):
            return data
        requirements = data.get("contentRequirements") or data.get("content_requirements")
        if not isinstance(requirements, dict):
            return data
        legacy = []
        for key in ("titleKeywords", "bodyKeywords"):
            items = requirements.get(key)
            if isinstance(items, list):
                legacy.extend(items)
        keywords = [text for text in (_keyword_text(item) for item in legacy) if text]
        if not keywords:
            return data
        return {**data, "keywords": keywords}

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, value, info: ValidationInfo):
        return coerce_non_negative_int(value, info)

    @field_validator("platform", "review_channel", "visit_info", "phone", "reviewer_announcement", mode="before")
    @classmethod
    def _blank_to_none(cls, value, info: ValidationInfo):
        if is_lenient(info):
            value = _scalar_text(value)
            if not isinstance(value, (str, type(None))):
                return None
        if isinstance(value, str):
            return normalize_optional_text(value)
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _resolve_category(cls, value, info: ValidationInfo):
        if not isinstance(value, str):
            if is_lenient(info):
                return None
            return value
        category = normalize_optional_text(value)
        if category is None:
            return None
        if category.lower() == "other":
            return CampaignCategory.OTHER.value
        if category in CATEGORY_VALUES:
            return category
        if is_lenient(info):
            return None
        raise ValueError(f"unknown category: {category!r}")

    @field_validator("recruit_period", "review_registration_period", mode="before")
    @classmethod
    def _coerce_period(cls, value, info: ValidationInfo):
        if value is None:
            return {}
        if is_lenient(info) and isinstance(value, str):
            # "2026-02-01 ~ 2026-02-10" 한 줄 표기
            start, _, end = value.partition("~")
            return {"start": start, "end": end}
        return value

    @field_validator("content_requirements", mode="before")
    @classmethod
    def _none_requirements(cls, value):
        return {} if value is None else value

    @field_validator("reward_info", mode="before")
    @classmethod
    def _coerce_reward_info(cls, value, info: ValidationInfo):
        if value is None:
            return {}
        if is_lenient(info):
            # "스타벅스 음료권 1매" 처럼 문자열 하나로 온 경우
            if isinstance(value, str):
                return {"description": value}
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return {"points": value}
            if not isinstance(value, dict):
                return {}
        return value

    @field_validator("missions", mode="before")
    @classmethod
    def _coerce_missions(cls, value, info: ValidationInfo):
        if value is None:
            return ()
        if not is_lenient(info):
            return value
        if isinstance(value, (str, dict)):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return ()
        missions = []
        for item in value:
            if isinstance(item, str):
                item = {"title": item}
            if not isinstance(item, dict):
                continue
            if not normalize_optional_text(_scalar_text(item.get("title"))):
                continue
            missions.append(item)
        return missions

    @field_validator("required_notices", "important_notes", "warnings", mode="before")
    @classmethod
    def _coerce_text_lists(cls, value, info: ValidationInfo):
        return _text_list(value, info)

    @field_validator("deadlines", mode="before")
    @classmethod
    def _coerce_deadlines(cls, value, info: ValidationInfo):
        if value is None:
            return ()
        if not is_lenient(info) or not isinstance(value, list):
            return value
        deadlines = []
        for item in value:
            if not isinstance(item, dict):
                continue
            label = normalize_optional_text(_scalar_text(item.get("label")))
            date = normalize_optional_text(_scalar_text(item.get("date")))
            if not label or not date:
                continue
            description = item.get("description")
            deadlines.append({
                "label": label,
                "date": date,
                "description": description.strip() if isinstance(description, str) else "",
            })
        return deadlines

    @field_validator("keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, value, info: ValidationInfo):
        if value is None:
            return ()
        if not is_lenient(info):
            return value
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return ()
        return [text for text in (_keyword_text(item) for item in value) if text]

    @field_validator("guideline_digest", mode="before")
    @classmethod
    def _coerce_digest(cls, value, info: ValidationInfo):
        if value is None:
            return None
        if is_lenient(info):
            return normalize_digest(value)
        return value

    @model_serializer(mode="wrap")
    def _omit_empty_digest(self, handler):
        data = handler(self)
        for key in ("guidelineDigest", "guideline_digest"):
            if key in data and data[key] is None:
                del data[key]
        return data


class GuidelineParseRequest(CustomModel):
    guideline: Optional[str] = None
    user_id: str = Field(..., alias="userId", min_length=1)
    platforms: List[str] = Field(default_factory=list, description="사용자가 등록한 플랫폼 후보")
    categories: List[str] = Field(default_factory=list, description="사용자가 등록한 카테고리")
    review_channels: List[str] = Field(default_factory=list, alias="reviewChannels", description="사용자가 등록한 리뷰 채널")


class GuidelineParseResponse(CustomModel):
    success: bool = True
    status: ParseStatus
    filled_fields: List[str] = Field(default_factory=list, alias="filledFields", description="정규식 보정으로 채운 필드")
    data: CampaignAnalysis
