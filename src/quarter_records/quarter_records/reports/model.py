from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AttendanceSummaryRow:
    student_id: int
    present_count: int
    absent_count: int
    late_count: int
    total_days: int
    attendance_rate: float


@dataclass(frozen=True)
class GradeSummary:
    subject_id: int
    total_students: int
    graded_students: int
    average_grade: Optional[float]
    passing_rate: Optional[float]
    lowest_grade: Optional[float]
    highest_grade: Optional[float]
