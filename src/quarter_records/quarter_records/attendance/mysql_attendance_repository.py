from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, GradingPeriod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from ..packages.mysql_edit_lock import lock_scope_for_edit
from .model import AttendanceEntry, AttendanceRecord
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert_day(
        self,
        *,
        section_id: int,
        attendance_date: date,
        period: GradingPeriod,
        entries: Sequence[AttendanceEntry],
        recorded_by: Optional[int] = None,
    ) -> int:
        if not entries:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            # Attendance is governed by the section-wide package of the period.
            lock_scope_for_edit(cur, section_id=section_id, subject_id=None, period=period)
            cur.executemany(
                """
                INSERT INTO attendance_records(student_id, section_id, attendance_date, period, status, recorded_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    period=VALUES(period),
                    recorded_by=VALUES(recorded_by),
                    updated_at=NOW()
                """,
                [
                    (
                        int(e.student_id),
                        int(section_id),
                        attendance_date,
                        period.value,
                        e.status.value,
                        int(recorded_by) if recorded_by is not None else None,
                    )
                    for e in entries
                ],
            )
            return len(entries)

    def list_for_day(self, *, section_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, section_id, attendance_date, period, status, recorded_by, updated_at
                FROM attendance_records
                WHERE section_id=%s AND attendance_date=%s
                ORDER BY student_id
                """,
                (int(section_id), attendance_date),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def list_for_period(self, *, section_id: int, period: GradingPeriod) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, section_id, attendance_date, period, status, recorded_by, updated_at
                FROM attendance_records
                WHERE section_id=%s AND period=%s
                ORDER BY attendance_date, student_id
                """,
                (int(section_id), period.value),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    @staticmethod
    def _to_record(r: dict) -> AttendanceRecord:
        return AttendanceRecord(
            student_id=int(r["student_id"]),
            section_id=int(r["section_id"]),
            attendance_date=r["attendance_date"],
            period=GradingPeriod(r["period"]),
            status=AttendanceStatus(r["status"]),
            recorded_by=r.get("recorded_by"),
            updated_at=r.get("updated_at"),
        )
