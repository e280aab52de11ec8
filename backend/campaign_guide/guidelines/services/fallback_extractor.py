#!/usr/bin/env python3
"""
Rule-Based Fallback Extractor for Campaign Guidelines
=====================================================
LLM 응답과 무관하게 가이드라인 원문에서 포인트 / 전화번호 / 플랫폼을
정규식으로 다시 뽑아냅니다. 모델이 값을 비워둔 필드를 채우는 용도입니다.

사용법:
    from fallback_extractor import FallbackExtractor

    extractor = FallbackExtractor()
    fields = extractor.extract(guideline_text, platforms=["레뷰", "강남맛집"])

    print(fields.points, fields.phone, fields.platform)
"""

import re
import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence

from .amount_parser import parse_amount, parse_amount_range
from .phone import normalize_phone, is_canonical_phone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackFields:
    """정규식 기반 보정 결과 (찾지 못한 필드는 None)"""
    points: Optional[int] = None
    phone: Optional[str] = None
    platform: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[object]]:
        return asdict(self)


class FallbackExtractor:
    """정규식 기반 보정 추출기"""

    def __init__(self):
        # 리워드 문맥 키워드 (이 중 하나라도 포함된 줄만 금액 후보로 본다)
        self.reward_keywords = [
            '포인트', 'point', '리워드', 'reward', '원고료', '체험권', '이용권',
            '상품권', '바우처', 'voucher', '페이백', '지급', '결제', '금액',
            '가격', '구매', '제공', '적립', '캐시', '혜택',
        ]

        suffix = r'(?:원|P(?![A-Za-z])|p(?![A-Za-z])|포인트|point)'
        number = r'\d[\d,]*(?:\.\d+)?'
        korean_amount = rf'{number}\s*[억만천백십]+(?:\s*{number}\s*[억만천백십]+)*(?:\d+)?'
        # 단위가 없을 때는 인원/횟수/시간 같은 수량 단위가 뒤따르면 금액이 아님
        # (숫자 중간에서 끊긴 부분 일치도 막음)
        not_a_count = r'(?!\d|[.,]\d|\s*(?:명|개|회|장|일|시|분|%))'

        # 1) 범위 금액: "1~2만", "5,000-10,000P"
        self.range_pattern = re.compile(
            rf'(?<![\d.])((?:{korean_amount}|{number})\s*[~\-]\s*(?:{korean_amount}|{number}))'
            rf'(?:\s*{suffix}|{not_a_count})'
        )
        # 2) 한국어 단위 금액: "1만5천원", "2.5만 포인트", "3천만원"
        self.korean_unit_pattern = re.compile(rf'(?<![\d.])({korean_amount})(?:\s*{suffix}|{not_a_count})')
        # 3) 숫자 + 필수 단위: "15,000원", "15000P"
        self.plain_pattern = re.compile(rf'(?<![\d.])({number})\s*{suffix}')

        # 금액으로 오인되면 안 되는 모양 (전화번호, 날짜, 시각)
        self.phone_pattern = re.compile(
            r'(?<!\d)(?:\+?82[\s.\-]*)?\(?0?\d{1,2}\)?[\s.\-]*\d{3,4}[\s.\-]*\d{4}(?!\d)'
        )
        self.date_pattern = re.compile(
            r'\d{4}\s*[.\-/년]\s*\d{1,2}\s*[.\-/월]\s*\d{1,2}\s*일?'
            r'|\d{1,2}\s*[./]\s*\d{1,2}\s*\(?[월화수목금토일]\)?'
            r'|(?<![\d.,])\d{1,2}\s*/\s*\d{1,2}(?![\d,])'
            r'|\d{1,2}\s*월\s*\d{1,2}\s*일'
        )
        self.time_pattern = re.compile(r'(?<!\d)\d{1,2}\s*:\s*\d{2}(?!\d)')

    def extract(self, guideline: str, platforms: Optional[Sequence[str]] = None) -> FallbackFields:
        fields = FallbackFields(
            points=self.extract_points(guideline),
            phone=self.extract_phone(guideline),
            platform=self.match_platform(guideline, platforms or []),
        )
        logger.debug(f"Fallback extraction result: {fields}")
        return fields

    # ----- 포인트 -----

    def extract_points(self, guideline: str) -> Optional[int]:
        """리워드 문맥 줄에서 찾은 모든 금액 중 최댓값"""
        best = 0
        for line in self._reward_lines(guideline):
            masked = self._mask_non_amounts(line)
            for amount in self._amounts_in_line(masked):
                if amount > best:
                    best = amount
        return best if best > 0 else None

    def _reward_lines(self, guideline: str) -> List[str]:
        lines = []
        for line in (guideline or '').splitlines():
            lowered = line.lower()
            if any(keyword in lowered for keyword in self.reward_keywords):
                lines.append(line)
        return lines

    def _mask_non_amounts(self, line: str) -> str:
        def mask_phone(match: re.Match) -> str:
            # "10000000원"처럼 전화번호 모양이어도 정규화가 안 되면 금액으로 남김
            return ' ' if is_canonical_phone(normalize_phone(match.group(0))) else match.group(0)

        masked = self.phone_pattern.sub(mask_phone, line)
        masked = self.date_pattern.sub(' ', masked)
        return self.time_pattern.sub(' ', masked)

    def _amounts_in_line(self, line: str) -> List[int]:
        amounts = []
        for match in self.range_pattern.finditer(line):
            value = parse_amount_range(match.group(1))
            if value is not None:
                amounts.append(value)
        for pattern in (self.korean_unit_pattern, self.plain_pattern):
            for match in pattern.finditer(line):
                value = parse_amount(match.group(1))
                if value is not None:
                    amounts.append(value)
        return amounts

    # ----- 전화번호 -----

    def extract_phone(self, guideline: str) -> Optional[str]:
        """정규화 결과가 표준 형식인 첫 번째 전화번호"""
        for match in self.phone_pattern.finditer(guideline or ''):
            phone = normalize_phone(match.group(0))
            if is_canonical_phone(phone):
                return phone
        return None

    # ----- 플랫폼 -----

    def match_platform(self, guideline: str, platforms: Sequence[str]) -> Optional[str]:
        """소문자 + 공백 제거 후 원문에 포함된 첫 번째 후보 플랫폼"""
        if not platforms:
            return None
        haystack = _squash(guideline or '')
        for platform in platforms:
            if not isinstance(platform, str):
                continue
            needle = _squash(platform)
            if needle and needle in haystack:
                return platform
        return None


def _squash(value: str) -> str:
    return re.sub(r'\s+', '', value).lower()


_default_extractor = FallbackExtractor()


def extract_fallback_fields(guideline: str, platforms: Optional[Sequence[str]] = None) -> FallbackFields:
    return _default_extractor.extract(guideline, platforms)
