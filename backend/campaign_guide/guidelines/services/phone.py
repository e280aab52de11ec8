# backend/campaign_guide/guidelines/services/phone.py
"""전화번호 정규화 (02-XXX(X)-XXXX / 0XX-XXX(X)-XXXX)"""

import re
from typing import Optional

_NON_DIGIT_RE = re.compile(r'\D')
_CANONICAL_PHONE_RE = re.compile(r'^(?:02-\d{3,4}|0\d{2}-\d{3,4})-\d{4}$')
_SEOUL_PREFIX = '02'


def normalize_phone(raw: str) -> str:
    """
    다양한 형태의 전화번호 문자열을 하이픈 표기로 변환.
    알려진 자릿수 패턴이 아니면 trim한 원본을 그대로 돌려준다.
    """
    trimmed = raw.strip()
    digits = _NON_DIGIT_RE.sub('', trimmed)

    # 국가번호 82 → 0 (+82 010..., +82 10... 모두 010...으로)
    if digits.startswith('82'):
        digits = '0' + digits[2:].lstrip('0')

    if digits.startswith(_SEOUL_PREFIX):
        if len(digits) == 9:
            return f"{digits[:2]}-{digits[2:5]}-{digits[5:]}"
        if len(digits) == 10:
            return f"{digits[:2]}-{digits[2:6]}-{digits[6:]}"
    elif re.match(r'^0\d{2}', digits):
        if len(digits) == 10:
            return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
        if len(digits) == 11:
            return f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"

    return trimmed


def is_canonical_phone(value: Optional[str]) -> bool:
    return bool(value) and bool(_CANONICAL_PHONE_RE.match(value))
