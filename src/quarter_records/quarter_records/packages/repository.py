from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import GradingPeriod, PackageStatus
from ..grading.model import FinalGrade
from ..history.model import NewHistoryEntry
from .model import QuarterPackage


class PackageRepository(Protocol):
    """Repository interface for quarter packages.

    Note: one package per (section_id, subject_id, period); subject_id may be None.
    """

    def get_by_id(self, package_id: int) -> Optional[QuarterPackage]:
        raise NotImplementedError

    def find(self, *, section_id: int, subject_id: Optional[int], period: GradingPeriod) -> Optional[QuarterPackage]:
        raise NotImplementedError

    def get_or_create(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
        owner_id: int,
    ) -> QuarterPackage:
        """Return the existing package or insert a Draft one owned by owner_id."""

        raise NotImplementedError

    def list_by_status(self, *, status: PackageStatus, limit: int = 200) -> Sequence[QuarterPackage]:
        raise NotImplementedError

    def list_for_section(self, *, section_id: int) -> Sequence[QuarterPackage]:
        raise NotImplementedError

    def apply_transition(
        self,
        *,
        package_id: int,
        expected_status: PackageStatus,
        expected_revision: int,
        new_status: PackageStatus,
        remarks: Optional[str],
        submitted_at: Optional[datetime],
        entry: NewHistoryEntry,
        final_grades: Sequence[FinalGrade] = (),
    ) -> Optional[QuarterPackage]:
        """Compare-and-set on (package_id, expected_status, expected_revision).

        In a single transaction: update the package, upsert final_grades and
        append entry. Returns the updated package, or None when the package was
        no longer in expected_status at expected_revision (nothing is written).
        A successful transition bumps the revision.
        """

        raise NotImplementedError
