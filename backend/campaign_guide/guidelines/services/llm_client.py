# backend/campaign_guide/guidelines/services/llm_client.py
"""
가이드라인 분석용 LLM 호출 모듈
기본은 Gemini, USE_OPENAI=True면 OpenAI Responses API 사용
"""

import json
import time
import uuid
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from ...config import settings
from ..exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

# prompt -> 모델 원문 응답
ModelCaller = Callable[[str], Awaitable[str]]


def dump_prompt(kind: str, prompt_text: str, metadata: Optional[Dict] = None) -> None:
    """Persist guideline prompts to disk when debugging is enabled."""
    if not settings.GUIDELINE_DUMP_PROMPTS:
        return

    try:
        base_dir = Path(settings.GUIDELINE_PROMPT_DUMP_DIR or "logs/guideline_prompts")
        base_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        filename = f"{timestamp}_{kind}_{uuid.uuid4().hex[:8]}.txt"
        file_path = base_dir / filename

        with file_path.open("w", encoding="utf-8") as handle:
            if metadata:
                handle.write(json.dumps(metadata, ensure_ascii=False))
                handle.write("\n\n")
            handle.write(prompt_text)

        logger.debug("Saved guideline prompt dump: %s", file_path)
    except OSError as exc:
        logger.debug("Failed to dump guideline prompt (%s): %s", kind, exc)


async def _call_gemini(prompt: str) -> str:
    if not settings.GEMINI_API_KEY:
        logger.error("GEMINI_API_KEY is not set in environment variables")
        raise UpstreamUnavailable("API 키가 설정되지 않았습니다. 관리자에게 문의하세요.")

    from google import genai

    client = genai.Client(api_key=settings.GEMINI_API_KEY)
    response = await client.aio.models.generate_content(
        model=settings.GEMINI_MODEL or "gemini-2.0-flash",
        contents=prompt,
    )
    return response.text or ""


async def _call_openai(prompt: str) -> str:
    if not settings.OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY is not set in environment variables")
        raise UpstreamUnavailable("API 키가 설정되지 않았습니다. 관리자에게 문의하세요.")

    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    response = await client.responses.create(
        model=settings.OPENAI_MODEL or "gpt-5-mini",
        input=[
            {
                "role": "user",
                "content": [{"type": "input_text", "text": prompt}],
            },
        ],
    )
    return response.output_text or ""


async def call_guideline_model(prompt: str) -> str:
    """
    LLM을 한 번 호출해 원문 응답을 반환.
    호출 실패나 빈 응답은 UpstreamUnavailable (재시도는 호출 측 책임).
    """
    provider = "openai" if settings.USE_OPENAI else "gemini"
    dump_prompt(f"{provider}_guideline", prompt, {"prompt_length": len(prompt)})

    start_time = time.time()
    try:
        if settings.USE_OPENAI:
            text = await _call_openai(prompt)
        else:
            text = await _call_gemini(prompt)
    except UpstreamUnavailable:
        raise
    except Exception as exc:
        logger.error(f"{provider} guideline analysis call failed: {exc}")
        raise UpstreamUnavailable(f"가이드라인 분석 모델 호출에 실패했습니다: {exc}") from exc

    elapsed = time.time() - start_time
    if not text or not text.strip():
        logger.error(f"{provider} returned an empty response ({elapsed:.2f}s)")
        raise UpstreamUnavailable("가이드라인 분석 모델이 빈 응답을 반환했습니다")

    logger.info(f"✅ {provider} guideline response received: {len(text)} chars in {elapsed:.2f}s")
    return text
