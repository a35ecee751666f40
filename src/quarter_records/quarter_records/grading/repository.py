from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import ComponentType, GradingPeriod
from .model import GradeComponent, GradeSheetSnapshot, StudentFeedback


class GradebookRepository(Protocol):
    """Repository interface for grade components and feedback.

    Note: one component row per (student, subject, period, component_type) and
    one feedback row per (student, section, subject, period); writes are upserts.
    """

    def upsert_component(
        self,
        *,
        student_id: int,
        section_id: int,
        subject_id: int,
        period: GradingPeriod,
        component_type: ComponentType,
        score: float,
        recorded_by: Optional[int] = None,
    ) -> None:
        """Upsert the row. Raises PackageLockedError when the governing package is
        no longer Draft/Returned; the check and the write commit together."""

        raise NotImplementedError

    def get_components(
        self,
        *,
        student_id: int,
        subject_id: int,
        period: GradingPeriod,
    ) -> Mapping[ComponentType, float]:
        raise NotImplementedError

    def list_components(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
    ) -> Sequence[GradeComponent]:
        raise NotImplementedError

    def upsert_feedback(
        self,
        *,
        student_id: int,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
        text: str,
        recorded_by: Optional[int] = None,
    ) -> None:
        """Upsert the row. Raises PackageLockedError when the governing package is
        no longer Draft/Returned; the check and the write commit together."""

        raise NotImplementedError

    def list_feedback(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
    ) -> Sequence[StudentFeedback]:
        raise NotImplementedError

    def snapshot(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
    ) -> GradeSheetSnapshot:
        """All components and feedback of a package scope read at one point in time.

        subject_id=None reads every subject of the section (section-wide package).
        """

        raise NotImplementedError
