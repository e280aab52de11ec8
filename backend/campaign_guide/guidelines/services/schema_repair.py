# backend/campaign_guide/guidelines/services/schema_repair.py
"""
LLM 응답 → CampaignAnalysis 검증/복구 모듈

1차: 응답 전체를 JSON으로 보고 스키마 검증
2차: ```json 코드블록 또는 첫 번째 {...} 구간을 찾아 json_repair로 복구한 뒤
     필드 단위 강제 변환(lenient)으로 재검증

예외 대신 ParseOutcome(status, analysis, issues)를 반환하고,
호출 측은 status 값으로 분기합니다.
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

import json_repair
from pydantic import ValidationError

from ..models import ParseStatus
from ..schemas import CampaignAnalysis

logger = logging.getLogger(__name__)

# 복구 과정에서 다루는 느슨한 JSON 값 (검증 전까지는 이 형태로만 취급)
JSONValue = Union[Dict[str, "JSONValue"], List["JSONValue"], str, int, float, bool, None]

_FENCED_JSON_RE = re.compile(r'```json\s*([\s\S]*?)```', re.IGNORECASE)


@dataclass(frozen=True)
class FieldIssue:
    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path} - {self.reason}"


@dataclass(frozen=True)
class ParseOutcome:
    status: ParseStatus
    analysis: Optional[CampaignAnalysis] = None
    issues: Tuple[FieldIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status != ParseStatus.FAILED


def issues_from_error(exc: ValidationError) -> Tuple[FieldIssue, ...]:
    issues = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ())) or "$"
        issues.append(FieldIssue(path=path, reason=error.get("msg", "invalid value")))
    return tuple(issues)


def locate_json_span(text: str) -> Optional[str]:
    """```json 블록 우선, 없으면 문자열을 고려한 첫 번째 중괄호 균형 구간"""
    if not text:
        return None
    fenced = _FENCED_JSON_RE.search(text)
    if fenced and fenced.group(1).strip():
        return fenced.group(1).strip()

    start = text.find('{')
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    # 응답이 중간에 잘린 경우: 끝까지 넘기고 복구기에 맡김
    return text[start:]


def repair_json_payload(span: str) -> JSONValue:
    """trailing comma, 따옴표 누락, 닫히지 않은 괄호 등을 복구해 파이썬 값으로"""
    return json_repair.repair_json(span, return_objects=True)


def parse_model_response(text: str) -> ParseOutcome:
    """LLM 원문 응답을 CampaignAnalysis로 검증 (필요하면 복구)"""
    try:
        analysis = CampaignAnalysis.model_validate_json(text or "")
        return ParseOutcome(status=ParseStatus.CLEAN, analysis=analysis)
    except ValidationError as exc:
        first_issues = issues_from_error(exc)
        logger.info(f"Direct schema parse failed ({len(first_issues)} issues); trying JSON repair")

    span = locate_json_span(text or "")
    if span is None:
        logger.warning("No JSON object found in model response")
        return ParseOutcome(
            status=ParseStatus.FAILED,
            issues=(FieldIssue(path="$", reason="no JSON object found in model response"),),
        )

    payload = repair_json_payload(span)
    if not isinstance(payload, dict):
        return ParseOutcome(
            status=ParseStatus.FAILED,
            issues=(FieldIssue(path="$", reason=f"repaired payload is {type(payload).__name__}, not an object"),),
        )

    try:
        analysis = CampaignAnalysis.model_validate(payload, context={"lenient": True})
    except ValidationError as exc:
        issues = issues_from_error(exc)
        logger.warning(f"Schema validation failed after repair: {', '.join(str(issue) for issue in issues)}")
        return ParseOutcome(status=ParseStatus.FAILED, issues=issues)

    return ParseOutcome(status=ParseStatus.REPAIRED, analysis=analysis, issues=first_issues)
