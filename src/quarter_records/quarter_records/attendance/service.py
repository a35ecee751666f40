from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Iterable

from ..common.app_logger import get_logger
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, GradingPeriod
from ..core.exceptions import FutureDateError, ValidationError
from ..directory.repository import EnrollmentRoster
from ..packages import workflow
from ..packages.repository import PackageRepository
from .model import AttendanceEntry, AttendanceSheetRow
from .repository import AttendanceRepository

logger = get_logger("attendance")


class AttendanceService:
    """Attendance ledger: one status per student per class-day, saved a whole day at a time."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        packages: PackageRepository,
        roster: EnrollmentRoster,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._packages = packages
        self._roster = roster
        self._clock = clock

    @staticmethod
    def _parse_status(value, student_id: int) -> AttendanceStatus:
        if isinstance(value, AttendanceStatus):
            return value
        try:
            return AttendanceStatus(str(value or "").strip().upper())
        except ValueError:
            raise ValidationError(f"Invalid attendance status {value!r}", student_id=student_id)

    def _normalize(self, entries: Iterable) -> list[AttendanceEntry]:
        out: list[AttendanceEntry] = []
        for e in entries:
            if isinstance(e, AttendanceEntry):
                out.append(e)
                continue
            try:
                student_id = int(e["student_id"])
            except (KeyError, TypeError, ValueError):
                raise ValidationError("Each attendance entry needs a student_id")
            out.append(AttendanceEntry(student_id=student_id, status=self._parse_status(e.get("status"), student_id)))
        return out

    def _check_coverage(self, section_id: int, entries: list[AttendanceEntry]) -> None:
        active = list(self._roster.list_active_students(section_id))
        active_set = set(active)

        seen: set[int] = set()
        for e in entries:
            if e.student_id in seen:
                raise ValidationError(f"Student {e.student_id} appears more than once", student_id=e.student_id)
            if e.student_id not in active_set:
                raise ValidationError(
                    f"Student {e.student_id} is not actively enrolled in section {section_id}",
                    student_id=e.student_id,
                )
            seen.add(e.student_id)

        for student_id in active:
            if student_id not in seen:
                raise ValidationError(f"Attendance for student {student_id} is missing", student_id=student_id)

    def record_day(
        self,
        *,
        actor_id: int,
        section_id: int,
        attendance_date: date,
        entries: Iterable,
        period: GradingPeriod | str | None = None,
    ) -> int:
        today = self._clock().date()
        if attendance_date > today:
            raise FutureDateError(
                f"Cannot record attendance for {attendance_date.isoformat()}, which is after today",
                attendance_date=attendance_date.isoformat(),
            )

        # A day always belongs to its calendar quarter; a caller-supplied period may only confirm it.
        day_period = GradingPeriod.for_date(attendance_date)
        if period and GradingPeriod.parse(period) != day_period:
            raise ValidationError(
                f"{attendance_date.isoformat()} falls in {day_period.value}, not {GradingPeriod.parse(period).value}",
                attendance_date=attendance_date.isoformat(),
            )
        period = day_period
        normalized = self._normalize(entries)
        self._check_coverage(int(section_id), normalized)

        # Attendance belongs to the section-wide package of the period. The
        # repository repeats this check atomically with the write.
        package = self._packages.find(section_id=int(section_id), subject_id=None, period=period)
        workflow.ensure_editable(package)

        count = self._attendance.upsert_day(
            section_id=int(section_id),
            attendance_date=attendance_date,
            period=period,
            entries=normalized,
            recorded_by=int(actor_id),
        )
        logger.info(
            "attendance section=%s date=%s period=%s rows=%d by=%s",
            section_id, attendance_date.isoformat(), period.value, count, actor_id,
        )
        return count

    def get_day(self, *, section_id: int, attendance_date: date) -> list[AttendanceSheetRow]:
        saved = {
            r.student_id: r.status
            for r in self._attendance.list_for_day(section_id=int(section_id), attendance_date=attendance_date)
        }
        return [
            AttendanceSheetRow(student_id=student_id, status=saved.get(student_id))
            for student_id in self._roster.list_active_students(int(section_id))
        ]
