from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

from ...core.enums import ComponentType


class GradeCalculator(ABC):
    """Calculator interface (Strategy Pattern for the final grade)."""

    @abstractmethod
    def compute_final(self, written: float, performance: float, exam: float) -> int:
        raise NotImplementedError

    def compute_from_scores(self, scores: Mapping[ComponentType, float]) -> int:
        """Final from a component map; all three components must be present."""
        return self.compute_final(
            scores[ComponentType.WRITTEN],
            scores[ComponentType.PERFORMANCE],
            scores[ComponentType.EXAM],
        )
