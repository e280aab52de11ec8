# backend/campaign_guide/guidelines/services/amount_parser.py
"""
한국어 단위 금액 파서

"1만5천" → 15000, "2.5만" → 25000, "3천만" → 30000000, "15,000P" → 15000 처럼
가이드라인에 적힌 금액 조각을 정수로 변환합니다.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

# 한국어 자릿수 단위
KOREAN_UNIT_VALUES = {
    '억': 100_000_000,
    '만': 10_000,
    '천': 1_000,
    '백': 100,
    '십': 10,
}

# "3천만"처럼 작은 단위 바로 뒤의 만/억은 곱함
_UNIT_AMOUNT_RE = re.compile(r'(\d+(?:\.\d+)?)\s*([십백천]?[억만]|[십백천])')
_TRAILING_DIGITS_RE = re.compile(r'^(\d+)')
_NON_NUMERIC_RE = re.compile(r'[^\d.]')
_RANGE_RE = re.compile(r'^(?P<low>.*?\d.*?)\s*[~\-]\s*(?P<high>.*?\d.*)$')


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def parse_amount(fragment: Optional[str]) -> Optional[int]:
    """금액 조각 하나를 정수로 변환. 숫자가 없으면 None."""
    if fragment is None:
        return None
    text = str(fragment).strip().replace(',', '')
    if not text:
        return None

    matches = list(_UNIT_AMOUNT_RE.finditer(text))
    if matches:
        total = Decimal(0)
        for match in matches:
            multiplier = 1
            for unit in match.group(2):
                multiplier *= KOREAN_UNIT_VALUES[unit]
            total += Decimal(match.group(1)) * multiplier
        # "1만5000"처럼 마지막 단위 뒤에 붙은 숫자는 그대로 더함
        rest = _TRAILING_DIGITS_RE.match(text[matches[-1].end():])
        if rest:
            total += Decimal(rest.group(1))
        return _round_half_up(total)

    digits = _NON_NUMERIC_RE.sub('', text)
    if not digits:
        return None
    try:
        return _round_half_up(Decimal(digits))
    except InvalidOperation:
        return None


def parse_amount_range(text: Optional[str]) -> Optional[int]:
    """
    범위 표기("1~2만", "5,000-10,000P")면 양쪽을 각각 파싱해 큰 값을 반환.
    범위가 아니면 parse_amount와 동일.
    """
    if text is None:
        return None
    stripped = str(text).strip()
    match = _RANGE_RE.match(stripped)
    if not match:
        return parse_amount(stripped)

    values = [
        value
        for value in (parse_amount(match.group('low')), parse_amount(match.group('high')))
        if value is not None
    ]
    return max(values) if values else None
