# backend/campaign_guide/guidelines/exceptions.py
from typing import Optional, Sequence, Tuple

from .services.fallback_extractor import FallbackFields
from .services.schema_repair import FieldIssue


class GuidelineAnalysisError(Exception):
    """가이드라인 분석 실패 공통 부모"""


class InvalidInput(GuidelineAnalysisError):
    """가이드라인 텍스트가 비어있음 (모델 호출 전에 거부)"""


class UpstreamUnavailable(GuidelineAnalysisError):
    """LLM 호출 실패 또는 빈 응답 (내부 재시도 없음)"""


class SchemaViolation(GuidelineAnalysisError):
    """복구 후에도 스키마 검증 실패, 또는 응답에서 JSON을 찾지 못함"""

    def __init__(
        self,
        issues: Sequence[FieldIssue],
        fallback: Optional[FallbackFields] = None,
    ):
        self.issues: Tuple[FieldIssue, ...] = tuple(issues)
        # 레코드는 만들 수 없어도 원문에서 뽑은 보정값은 호출 측에 넘김
        self.fallback = fallback or FallbackFields()
        detail = ", ".join(str(issue) for issue in self.issues) or "invalid analysis result"
        super().__init__(f"유효하지 않은 분석 결과입니다: {detail}")
