# backend/campaign_guide/guidelines/services/text_normalizer.py
"""
키워드 / 가이드라인 요약(digest) / 날짜 문자열 정규화
"""

import re
from typing import Any, Dict, Iterable, List, Optional

MAX_KEYWORDS = 50
DEFAULT_SECTION_TITLE = "세부 안내"

# 모델이 "값 없음"을 표현할 때 쓰는 문자열
EMPTY_SENTINELS = {"", "-", "null", "none", "n/a"}

_WHITESPACE_RE = re.compile(r'\s+')
_DATE_PATTERNS = [
    re.compile(r'^(\d{4})\s*[.\-/]\s*(\d{1,2})\s*[.\-/]\s*(\d{1,2})\.?$'),
    re.compile(r'^(\d{4})\s*년\s*(\d{1,2})\s*월\s*(\d{1,2})\s*일$'),
]


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(' ', value).strip()


def normalize_keywords(raw_keywords: Optional[Iterable[Any]], limit: int = MAX_KEYWORDS) -> List[str]:
    """trim + 공백 축약 + 대소문자 무시 중복 제거(처음 표기 유지) + 최대 limit개"""
    keywords: List[str] = []
    seen = set()
    for item in raw_keywords or []:
        if not isinstance(item, str):
            continue
        keyword = collapse_whitespace(item)
        if not keyword:
            continue
        key = keyword.casefold()
        if key in seen:
            continue
        seen.add(key)
        keywords.append(keyword)
        if len(keywords) >= limit:
            break
    return keywords


def normalize_items(raw_items: Any) -> List[str]:
    """리스트 또는 단일 문자열을 비어있지 않은 trim 문자열 리스트로"""
    if raw_items is None:
        return []
    if isinstance(raw_items, str):
        raw_items = [raw_items]
    elif not isinstance(raw_items, (list, tuple)):
        return []

    items = []
    for item in raw_items:
        if item is None or isinstance(item, (dict, list, tuple)):
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def normalize_digest(raw_digest: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    guidelineDigest 정규화.

    - summary trim
    - section title trim (항목이 있는데 제목이 비어있으면 기본 제목)
    - items 정규화 후 빈 섹션 제거
    - summary와 sections가 모두 비면 None (필드 자체를 생략)
    """
    if not isinstance(raw_digest, dict):
        return None

    summary = raw_digest.get("summary")
    summary = summary.strip() if isinstance(summary, str) else ""

    sections = []
    raw_sections = raw_digest.get("sections") or []
    if isinstance(raw_sections, dict):
        raw_sections = [raw_sections]
    for raw_section in raw_sections if isinstance(raw_sections, (list, tuple)) else []:
        if not isinstance(raw_section, dict):
            continue
        items = normalize_items(raw_section.get("items"))
        if not items:
            continue
        title = raw_section.get("title")
        title = title.strip() if isinstance(title, str) else ""
        sections.append({"title": title or DEFAULT_SECTION_TITLE, "items": items})

    if not summary and not sections:
        return None
    return {"summary": summary, "sections": sections}


def normalize_optional_text(value: Any) -> Optional[str]:
    """빈 문자열 / "-" / "null" 같은 표기는 None으로"""
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in EMPTY_SENTINELS:
        return None
    return text


def normalize_date_string(value: Any) -> Optional[str]:
    """2026.02.09 / 2026/2/9 / 2026년 2월 9일 → 2026-02-09 (그 외 형식은 trim만)"""
    text = normalize_optional_text(value)
    if text is None:
        return None
    for pattern in _DATE_PATTERNS:
        match = pattern.match(text)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return f"{year:04d}-{month:02d}-{day:02d}"
    return text
