from __future__ import annotations

import io

import pandas as pd

from ..core.constants import PASSING_GRADE
from ..core.enums import AttendanceStatus, ComponentType, GradingPeriod
from ..attendance.repository import AttendanceRepository
from ..directory.repository import EnrollmentRoster
from ..grading.repository import GradebookRepository
from .model import AttendanceSummaryRow, GradeSummary

GRADE_SHEET_COLUMNS = ["Student", "Written", "Performance", "Exam", "Final", "Feedback"]


class ReportService:
    def __init__(
        self,
        gradebook: GradebookRepository,
        attendance: AttendanceRepository,
        roster: EnrollmentRoster,
    ):
        self._gradebook = gradebook
        self._attendance = attendance
        self._roster = roster

    def attendance_summary(self, *, section_id: int, period: GradingPeriod | str) -> list[AttendanceSummaryRow]:
        """Counts per active student; days count late as attended."""
        period = GradingPeriod.parse(period)
        counts: dict[int, dict[AttendanceStatus, int]] = {}
        for r in self._attendance.list_for_period(section_id=int(section_id), period=period):
            bucket = counts.setdefault(r.student_id, {s: 0 for s in AttendanceStatus})
            bucket[r.status] += 1

        rows: list[AttendanceSummaryRow] = []
        for student_id in self._roster.list_active_students(int(section_id)):
            c = counts.get(student_id, {s: 0 for s in AttendanceStatus})
            total = sum(c.values())
            attended = c[AttendanceStatus.PRESENT] + c[AttendanceStatus.LATE]
            rows.append(
                AttendanceSummaryRow(
                    student_id=student_id,
                    present_count=c[AttendanceStatus.PRESENT],
                    absent_count=c[AttendanceStatus.ABSENT],
                    late_count=c[AttendanceStatus.LATE],
                    total_days=total,
                    attendance_rate=round(attended * 100.0 / total, 2) if total else 0.0,
                )
            )
        return rows

    def grade_summary(self, *, section_id: int, subject_id: int, period: GradingPeriod | str) -> GradeSummary:
        period = GradingPeriod.parse(period)
        students = set(self._roster.list_active_students(int(section_id)))
        finals = [
            c.score
            for c in self._gradebook.list_components(section_id=int(section_id), subject_id=int(subject_id), period=period)
            if c.component_type == ComponentType.FINAL and c.student_id in students
        ]

        if not finals:
            return GradeSummary(
                subject_id=int(subject_id),
                total_students=len(students),
                graded_students=0,
                average_grade=None,
                passing_rate=None,
                lowest_grade=None,
                highest_grade=None,
            )

        passing = sum(1 for s in finals if s >= PASSING_GRADE)
        return GradeSummary(
            subject_id=int(subject_id),
            total_students=len(students),
            graded_students=len(finals),
            average_grade=round(sum(finals) / len(finals), 2),
            passing_rate=round(passing * 100.0 / len(finals), 2),
            lowest_grade=min(finals),
            highest_grade=max(finals),
        )

    def grade_sheet(self, *, section_id: int, subject_id: int, period: GradingPeriod | str) -> pd.DataFrame:
        period = GradingPeriod.parse(period)
        components = self._gradebook.list_components(section_id=int(section_id), subject_id=int(subject_id), period=period)
        feedback = {
            f.student_id: f.text
            for f in self._gradebook.list_feedback(section_id=int(section_id), subject_id=int(subject_id), period=period)
        }

        data = [
            {"student_id": c.student_id, "component": c.component_type.value.capitalize(), "score": c.score}
            for c in components
        ]
        scores = (
            pd.DataFrame(data).pivot(index="student_id", columns="component", values="score")
            if data
            else pd.DataFrame()
        )

        students = list(self._roster.list_active_students(int(section_id)))
        df = scores.reindex(index=students, columns=GRADE_SHEET_COLUMNS[1:5])
        df.insert(0, "Student", students)
        df["Feedback"] = [feedback.get(s, "") for s in students]
        return df.reset_index(drop=True)

    def export_grade_sheet(self, *, section_id: int, subject_id: int, period: GradingPeriod | str) -> bytes:
        df = self.grade_sheet(section_id=section_id, subject_id=subject_id, period=period)
        out = io.BytesIO()
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=str(GradingPeriod.parse(period).value))
        return out.getvalue()
