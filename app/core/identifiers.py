"""
identifiers.py

역할별 식별자(sponsor_id / child_id / center_id) 검증 규칙.

- 숫자(0-9)만 허용
- sponsor_id : 최대 8자리
- child_id   : 최대 10자리
- center_id  : 최대 8자리
- 빈 문자열은 "값 없음(None)"으로 취급

식별자는 앞자리 0을 보존해야 하므로 정수가 아닌 문자열로 저장한다.
"""

import re

from app.core.errors import ValidationError

_DIGITS_RE = re.compile(r"[0-9]+")

MAX_DIGITS = {
    "sponsor_id": 8,
    "child_id": 10,
    "center_id": 8,
}

_LABELS = {
    "sponsor_id": "Sponsor ID",
    "child_id": "Child ID",
    "center_id": "Bridge of Hope ID",
}


def validate_identifier(field: str, value: str | None) -> str | None:
    if field not in MAX_DIGITS:
        raise ValueError(f"unknown identifier field: {field}")
    if value is None or value == "":
        return None

    label = _LABELS[field]
    if not _DIGITS_RE.fullmatch(value):
        raise ValidationError(f"{label} must contain only numbers")
    if len(value) > MAX_DIGITS[field]:
        raise ValidationError(f"{label} must be {MAX_DIGITS[field]} digits or less")
    return value
