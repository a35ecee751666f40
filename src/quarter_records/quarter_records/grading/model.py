from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional

from ..core.enums import REQUIRED_COMPONENTS, ComponentType, GradingPeriod


@dataclass(frozen=True)
class GradeComponent:
    """Domain entity: one component score for a student in a subject and period."""

    student_id: int
    section_id: int
    subject_id: int
    period: GradingPeriod
    component_type: ComponentType
    score: float
    recorded_by: Optional[int] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class StudentFeedback:
    """Teacher feedback for a student; subject_id is None for section-level feedback."""

    student_id: int
    section_id: int
    subject_id: Optional[int]
    period: GradingPeriod
    text: str
    recorded_by: Optional[int] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class FinalGrade:
    """Derived Final score written back as a FINAL grade component."""

    student_id: int
    section_id: int
    subject_id: int
    period: GradingPeriod
    score: int


@dataclass(frozen=True)
class GradeSheetSnapshot:
    """Read-model of a package's grade set as of one point in time.

    components: (student_id, subject_id) -> {component_type: score}
    feedback: student_id -> text (for the package's own subject scope)
    """

    components: Mapping[tuple[int, int], Mapping[ComponentType, float]] = field(default_factory=dict)
    feedback: Mapping[int, str] = field(default_factory=dict)

    def subject_ids(self) -> list[int]:
        return sorted({subject_id for (_, subject_id) in self.components})

    def scores(self, student_id: int, subject_id: int) -> Mapping[ComponentType, float]:
        return self.components.get((student_id, subject_id), {})

    def missing_components(self, student_id: int, subject_id: int) -> list[ComponentType]:
        have = self.scores(student_id, subject_id)
        return [c for c in REQUIRED_COMPONENTS if c not in have]

    def has_feedback(self, student_id: int) -> bool:
        text = self.feedback.get(student_id)
        return bool(text and text.strip())
