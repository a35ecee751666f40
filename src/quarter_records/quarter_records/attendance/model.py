from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, GradingPeriod


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's status for one class-day of a section."""

    student_id: int
    section_id: int
    attendance_date: date
    status: AttendanceStatus
    period: GradingPeriod
    recorded_by: Optional[int] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: int
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceSheetRow:
    """Read-model for one active student on one day; status is None when nothing was saved."""

    student_id: int
    status: Optional[AttendanceStatus]
