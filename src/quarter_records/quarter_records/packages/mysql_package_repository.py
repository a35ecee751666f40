from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ComponentType, GradingPeriod, PackageStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..grading.model import FinalGrade
from ..grading.mysql_grade_repository import upsert_component_row
from ..history.model import NewHistoryEntry
from ..history.mysql_history_repository import insert_history_row
from .model import QuarterPackage
from .repository import PackageRepository

_COLUMNS = """
    package_id, section_id, subject_id, period, status, owner_id,
    remarks, submitted_at, revision, created_at, updated_at
"""


def _select_by_id(cur, package_id: int) -> Optional[QuarterPackage]:
    cur.execute(f"SELECT {_COLUMNS} FROM quarter_packages WHERE package_id=%s", (int(package_id),))
    r = fetchone(cur)
    return _to_package(r) if r else None


def _to_package(r: dict) -> QuarterPackage:
    subject_id = r.get("subject_id")
    return QuarterPackage(
        package_id=int(r["package_id"]),
        section_id=int(r["section_id"]),
        subject_id=int(subject_id) if subject_id is not None else None,
        period=GradingPeriod(r["period"]),
        status=PackageStatus(r["status"]),
        owner_id=int(r["owner_id"]),
        remarks=r.get("remarks"),
        submitted_at=r.get("submitted_at"),
        revision=int(r.get("revision") or 0),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


class MySQLPackageRepository(PackageRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, package_id: int) -> Optional[QuarterPackage]:
        with db_cursor(self._conn_factory) as (_, cur):
            return _select_by_id(cur, package_id)

    def find(self, *, section_id: int, subject_id: Optional[int], period: GradingPeriod) -> Optional[QuarterPackage]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM quarter_packages
                WHERE section_id=%s AND subject_key=%s AND period=%s
                """,
                (int(section_id), int(subject_id or 0), period.value),
            )
            r = fetchone(cur)
            return _to_package(r) if r else None

    def get_or_create(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
        owner_id: int,
    ) -> QuarterPackage:
        with db_cursor(self._conn_factory) as (_, cur):
            # INSERT IGNORE relies on the unique (section_id, subject_key, period) key.
            cur.execute(
                """
                INSERT IGNORE INTO quarter_packages(section_id, subject_id, period, status, owner_id)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    int(section_id),
                    int(subject_id) if subject_id is not None else None,
                    period.value,
                    PackageStatus.DRAFT.value,
                    int(owner_id),
                ),
            )
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM quarter_packages
                WHERE section_id=%s AND subject_key=%s AND period=%s
                """,
                (int(section_id), int(subject_id or 0), period.value),
            )
            return _to_package(fetchone(cur))

    def list_by_status(self, *, status: PackageStatus, limit: int = 200) -> Sequence[QuarterPackage]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM quarter_packages
                WHERE status=%s
                ORDER BY updated_at DESC
                LIMIT %s
                """,
                (status.value, int(limit)),
            )
            return [_to_package(r) for r in fetchall(cur)]

    def list_for_section(self, *, section_id: int) -> Sequence[QuarterPackage]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM quarter_packages
                WHERE section_id=%s
                ORDER BY period, subject_key
                """,
                (int(section_id),),
            )
            return [_to_package(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE quarter_packages
                SET status=%s, remarks=%s, submitted_at=%s, revision=revision+1, updated_at=NOW()
                WHERE package_id=%s AND status=%s AND revision=%s
                """,
                (
                    new_status.value,
                    remarks,
                    submitted_at,
                    int(package_id),
                    expected_status.value,
                    int(expected_revision),
                ),
            )
            if cur.rowcount != 1:
                return None

            for g in final_grades:
                upsert_component_row(
                    cur,
                    student_id=g.student_id,
                    section_id=g.section_id,
                    subject_id=g.subject_id,
                    period=g.period,
                    component_type=ComponentType.FINAL,
                    score=g.score,
                    recorded_by=entry.actor_id,
                )

            insert_history_row(cur, entry)
            return _select_by_id(cur, package_id)
