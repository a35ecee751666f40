from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import GradingPeriod
from .model import AttendanceEntry, AttendanceRecord


class AttendanceRepository(Protocol):
    def upsert_day(
        self,
        *,
        section_id: int,
        attendance_date: date,
        period: GradingPeriod,
        entries: Sequence[AttendanceEntry],
        recorded_by: Optional[int] = None,
    ) -> int:
        """Insert or overwrite one row per (student, section, date); returns rows written.

        Raises PackageLockedError when the section-wide package of the period
        is no longer Draft/Returned; the check and the write commit together.
        """

        raise NotImplementedError

    def list_for_day(self, *, section_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_period(self, *, section_id: int, period: GradingPeriod) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
