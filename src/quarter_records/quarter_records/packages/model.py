from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import GradingPeriod, PackageStatus


@dataclass(frozen=True)
class QuarterPackage:
    """Domain entity: grades, attendance and feedback of one section+subject+period.

    subject_id is None for a section-wide package (attendance and home-room feedback).
    revision counts record writes and transitions; a transition planned against
    an older revision loses its compare-and-set.
    """

    package_id: int
    section_id: int
    subject_id: Optional[int]
    period: GradingPeriod
    status: PackageStatus
    owner_id: int
    created_at: datetime
    updated_at: datetime
    submitted_at: Optional[datetime] = None
    remarks: Optional[str] = None
    revision: int = 0

    @property
    def is_section_wide(self) -> bool:
        return self.subject_id is None
