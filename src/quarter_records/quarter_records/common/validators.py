from __future__ import annotations

from typing import Optional

from ..core.constants import MAX_SCORE, MIN_SCORE
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_score(value, field_name: str = "Score", *, student_id: Optional[int] = None) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", student_id=student_id)
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number", student_id=student_id)
    if score != score or not (MIN_SCORE <= score <= MAX_SCORE):
        raise ValidationError(
            f"{field_name} must be between {MIN_SCORE} and {MAX_SCORE}",
            student_id=student_id,
        )
    return score
