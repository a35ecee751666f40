from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from ...common.validators import require_score
from ...core.constants import GRADE_WEIGHTS
from ...core.enums import ComponentType
from .base import GradeCalculator


class WeightedGradeCalculator(GradeCalculator):
    """Weighted rule: round_half_up(written*w1 + performance*w2 + exam*w3)."""

    def __init__(self, weights: Optional[Mapping[str, Decimal]] = None):
        weights = weights or GRADE_WEIGHTS
        self._written = Decimal(str(weights[ComponentType.WRITTEN.value]))
        self._performance = Decimal(str(weights[ComponentType.PERFORMANCE.value]))
        self._exam = Decimal(str(weights[ComponentType.EXAM.value]))
        if self._written + self._performance + self._exam != Decimal("1"):
            raise ValueError("Grade weights must sum to 1")

    def compute_final(self, written: float, performance: float, exam: float) -> int:
        w = Decimal(str(require_score(written, "Written score")))
        p = Decimal(str(require_score(performance, "Performance score")))
        e = Decimal(str(require_score(exam, "Exam score")))

        total = w * self._written + p * self._performance + e * self._exam
        return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
