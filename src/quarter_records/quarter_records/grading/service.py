from __future__ import annotations

from typing import Optional

from ..common.app_logger import get_logger
from ..common.validators import require_max_length, require_non_empty, require_score
from ..core.constants import MAX_FEEDBACK_LENGTH
from ..core.enums import REQUIRED_COMPONENTS, ComponentType, GradingPeriod
from ..core.exceptions import UnauthorizedError, ValidationError
from ..directory.repository import EnrollmentRoster
from ..packages import workflow
from ..packages.model import QuarterPackage
from ..packages.repository import PackageRepository
from .calculator.base import GradeCalculator
from .calculator.weighted_calculator import WeightedGradeCalculator
from .repository import GradebookRepository

logger = get_logger("grading")


class GradebookService:
    """Use cases: record component grades and feedback, recompute Final grades."""

    def __init__(
        self,
        gradebook: GradebookRepository,
        packages: PackageRepository,
        roster: EnrollmentRoster,
        *,
        calculator: Optional[GradeCalculator] = None,
    ):
        self._gradebook = gradebook
        self._packages = packages
        self._roster = roster
        self._calculator = calculator or WeightedGradeCalculator()

    @staticmethod
    def _parse_component(value) -> ComponentType:
        if isinstance(value, ComponentType):
            return value
        try:
            return ComponentType(str(value or "").strip().upper())
        except ValueError:
            raise ValidationError(f"Unknown grade component: {value!r}")

    def _require_enrolled(self, section_id: int, student_id: int) -> None:
        if int(student_id) not in set(self._roster.list_active_students(int(section_id))):
            raise ValidationError(
                f"Student {student_id} is not actively enrolled in section {section_id}",
                student_id=int(student_id),
            )

    def _open_for_edit(
        self,
        *,
        actor_id: int,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
    ) -> QuarterPackage:
        package = self._packages.get_or_create(
            section_id=int(section_id),
            subject_id=int(subject_id) if subject_id is not None else None,
            period=period,
            owner_id=int(actor_id),
        )
        workflow.ensure_editable(package)
        if int(package.owner_id) != int(actor_id):
            raise UnauthorizedError(
                "Only the package owner can edit its records",
                package_id=package.package_id,
                actor_id=actor_id,
            )
        return package

    def record_grade_component(
        self,
        *,
        actor_id: int,
        student_id: int,
        section_id: int,
        subject_id: int,
        period: GradingPeriod | str,
        component_type: ComponentType | str,
        score,
    ) -> None:
        period = GradingPeriod.parse(period)
        component = self._parse_component(component_type)
        value = require_score(score, f"{component.value.capitalize()} score", student_id=int(student_id))
        if subject_id is None:
            raise ValidationError("Subject is required for grades", student_id=int(student_id))

        self._require_enrolled(section_id, student_id)
        self._open_for_edit(actor_id=actor_id, section_id=section_id, subject_id=subject_id, period=period)

        self._gradebook.upsert_component(
            student_id=int(student_id),
            section_id=int(section_id),
            subject_id=int(subject_id),
            period=period,
            component_type=component,
            score=value,
            recorded_by=int(actor_id),
        )
        if component == ComponentType.FINAL:
            logger.info(
                "manual final override student=%s subject=%s period=%s by=%s",
                student_id, subject_id, period.value, actor_id,
            )

    def record_feedback(
        self,
        *,
        actor_id: int,
        student_id: int,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod | str,
        text: str,
    ) -> None:
        period = GradingPeriod.parse(period)
        text = require_non_empty(text, "Feedback")
        require_max_length(text, "Feedback", MAX_FEEDBACK_LENGTH)

        self._require_enrolled(section_id, student_id)
        self._open_for_edit(actor_id=actor_id, section_id=section_id, subject_id=subject_id, period=period)

        self._gradebook.upsert_feedback(
            student_id=int(student_id),
            section_id=int(section_id),
            subject_id=int(subject_id) if subject_id is not None else None,
            period=period,
            text=text,
            recorded_by=int(actor_id),
        )

    def recompute_final(
        self,
        *,
        actor_id: int,
        student_id: int,
        section_id: int,
        subject_id: int,
        period: GradingPeriod | str,
    ) -> int:
        """Derive and store one student's Final; calling it twice stores the same value once."""
        period = GradingPeriod.parse(period)
        self._open_for_edit(actor_id=actor_id, section_id=section_id, subject_id=subject_id, period=period)

        scores = self._gradebook.get_components(student_id=int(student_id), subject_id=int(subject_id), period=period)
        missing = [c for c in REQUIRED_COMPONENTS if c not in scores]
        if missing:
            raise ValidationError(
                f"Student {student_id} is missing {', '.join(c.value.lower() for c in missing)} grade(s)",
                student_id=int(student_id),
            )

        final = self._calculator.compute_from_scores(scores)
        self._gradebook.upsert_component(
            student_id=int(student_id),
            section_id=int(section_id),
            subject_id=int(subject_id),
            period=period,
            component_type=ComponentType.FINAL,
            score=final,
            recorded_by=int(actor_id),
        )
        return final

    def list_section_grades(
        self,
        *,
        section_id: int,
        subject_id: int,
        period: GradingPeriod | str,
    ) -> list[dict]:
        """One row per active student: component scores (None when unset) and feedback."""
        period = GradingPeriod.parse(period)
        students = list(self._roster.list_active_students(int(section_id)))
        components = self._gradebook.list_components(section_id=int(section_id), subject_id=int(subject_id), period=period)
        feedback = {
            f.student_id: f.text
            for f in self._gradebook.list_feedback(section_id=int(section_id), subject_id=int(subject_id), period=period)
        }

        by_student: dict[int, dict[ComponentType, float]] = {}
        for c in components:
            by_student.setdefault(c.student_id, {})[c.component_type] = c.score

        rows = []
        for student_id in students:
            scores = by_student.get(student_id, {})
            rows.append(
                {
                    "student_id": student_id,
                    "written": scores.get(ComponentType.WRITTEN),
                    "performance": scores.get(ComponentType.PERFORMANCE),
                    "exam": scores.get(ComponentType.EXAM),
                    "final": scores.get(ComponentType.FINAL),
                    "feedback": feedback.get(student_id, ""),
                }
            )
        return rows
