# backend/campaign_guide/guidelines/router.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import settings
from ..database import SessionDep
from ..quota import service as quota_service
from .exceptions import GuidelineAnalysisError, InvalidInput, SchemaViolation, UpstreamUnavailable
from .schemas import GuidelineParseRequest, GuidelineParseResponse
from .service import analyze_guideline, ensure_guideline_text
from .services.llm_client import ModelCaller, call_guideline_model

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


def get_model_caller() -> ModelCaller:
    """LLM 호출 함수 주입 (테스트에서 dependency_overrides로 교체)"""
    return call_guideline_model


def _to_http_exception(error: GuidelineAnalysisError) -> HTTPException:
    if isinstance(error, InvalidInput):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, UpstreamUnavailable):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
    if isinstance(error, SchemaViolation):
        return HTTPException(
            status_code=422,
            detail={
                "error": str(error),
                "issues": [{"path": issue.path, "reason": issue.reason} for issue in error.issues],
                "fallback": error.fallback.as_dict(),
            },
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.post("/parse-guideline", response_model=GuidelineParseResponse)
async def parse_guideline(
    body: GuidelineParseRequest,
    db: SessionDep,
    call_model: ModelCaller = Depends(get_model_caller),
):
    # 빈 가이드라인은 사용량 차감/모델 호출 없이 바로 거부
    try:
        guideline = ensure_guideline_text(body.guideline)
    except InvalidInput as e:
        raise _to_http_exception(e)

    now = datetime.now(timezone.utc)
    if not await quota_service.try_consume(db, body.user_id, now=now):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=quota_service.QUOTA_BLOCKED_MESSAGE.format(limit=settings.GUIDELINE_DAILY_LIMIT),
        )

    try:
        result = await analyze_guideline(
            guideline,
            platforms=body.platforms,
            categories=body.categories,
            review_channels=body.review_channels,
            call_model=call_model,
        )
    except GuidelineAnalysisError as e:
        # 실패한 분석은 사용 횟수에서 제외
        await quota_service.release(db, body.user_id, now=now)
        logger.error(f"가이드라인 분석 오류 (user_id={body.user_id}): {e}")
        raise _to_http_exception(e)

    logger.info(
        f"Guideline analyzed for user_id={body.user_id}: status={result.status.value}, "
        f"filled={list(result.filled_fields)}"
    )
    return GuidelineParseResponse(
        status=result.status,
        filled_fields=list(result.filled_fields),
        data=result.analysis,
    )
