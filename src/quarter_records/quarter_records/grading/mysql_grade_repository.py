from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..core.enums import ComponentType, GradingPeriod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_snapshot, fetchall
from ..packages.mysql_edit_lock import lock_scope_for_edit
from .model import GradeComponent, GradeSheetSnapshot, StudentFeedback
from .repository import GradebookRepository

_UPSERT_COMPONENT_SQL = """
    INSERT INTO grade_components(
        student_id, section_id, subject_id, period, component_type, score, recorded_by
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s)
    ON DUPLICATE KEY UPDATE
        section_id=VALUES(section_id),
        score=VALUES(score),
        recorded_by=VALUES(recorded_by),
        updated_at=NOW()
"""


def upsert_component_row(
    cur,
    *,
    student_id: int,
    section_id: int,
    subject_id: int,
    period: GradingPeriod,
    component_type: ComponentType,
    score: float,
    recorded_by: Optional[int] = None,
) -> None:
    """Shared by the package repository so Final grades join the transition's transaction."""
    cur.execute(
        _UPSERT_COMPONENT_SQL,
        (
            int(student_id),
            int(section_id),
            int(subject_id),
            period.value,
            component_type.value,
            float(score),
            int(recorded_by) if recorded_by is not None else None,
        ),
    )


def _scope_clause(subject_id: Optional[int], column: str = "subject_id") -> tuple[str, tuple]:
    if subject_id is None:
        return "1=1", ()
    return f"{column}=%s", (int(subject_id),)


class MySQLGradebookRepository(GradebookRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Grade components --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            lock_scope_for_edit(cur, section_id=section_id, subject_id=subject_id, period=period)
            upsert_component_row(
                cur,
                student_id=student_id,
                section_id=section_id,
                subject_id=subject_id,
                period=period,
                component_type=component_type,
                score=score,
                recorded_by=recorded_by,
            )

    def get_components(
        self,
        *,
        student_id: int,
        subject_id: int,
        period: GradingPeriod,
    ) -> Mapping[ComponentType, float]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT component_type, score
                FROM grade_components
                WHERE student_id=%s AND subject_id=%s AND period=%s
                """,
                (int(student_id), int(subject_id), period.value),
            )
            return {ComponentType(r["component_type"]): float(r["score"]) for r in fetchall(cur)}

    def list_components(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
    ) -> Sequence[GradeComponent]:
        scope, scope_params = _scope_clause(subject_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, section_id, subject_id, period, component_type,
                       score, recorded_by, updated_at
                FROM grade_components
                WHERE section_id=%s AND period=%s AND {scope}
                ORDER BY student_id, subject_id, component_type
                """,
                (int(section_id), period.value) + scope_params,
            )
            return [self._to_component(r) for r in fetchall(cur)]

    # -------- Feedback --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            lock_scope_for_edit(cur, section_id=section_id, subject_id=subject_id, period=period)
            cur.execute(
                """
                INSERT INTO student_feedback(student_id, section_id, subject_id, period, feedback, recorded_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    feedback=VALUES(feedback),
                    recorded_by=VALUES(recorded_by),
                    updated_at=NOW()
                """,
                (
                    int(student_id),
                    int(section_id),
                    int(subject_id) if subject_id is not None else None,
                    period.value,
                    text,
                    int(recorded_by) if recorded_by is not None else None,
                ),
            )

    def list_feedback(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
    ) -> Sequence[StudentFeedback]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, section_id, subject_id, period, feedback, recorded_by, updated_at
                FROM student_feedback
                WHERE section_id=%s AND period=%s AND subject_key=%s
                ORDER BY student_id
                """,
                (int(section_id), period.value, int(subject_id or 0)),
            )
            return [
                StudentFeedback(
                    student_id=int(r["student_id"]),
                    section_id=int(r["section_id"]),
                    subject_id=r.get("subject_id"),
                    period=GradingPeriod(r["period"]),
                    text=r["feedback"],
                    recorded_by=r.get("recorded_by"),
                    updated_at=r.get("updated_at"),
                )
                for r in fetchall(cur)
            ]

    # -------- Submission snapshot --------
    def snapshot(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod,
    ) -> GradeSheetSnapshot:
        scope, scope_params = _scope_clause(subject_id)
        components: dict[tuple[int, int], dict[ComponentType, float]] = {}
        feedback: dict[int, str] = {}

        with db_snapshot(self._conn_factory) as cur:
            cur.execute(
                f"""
                SELECT student_id, subject_id, component_type, score
                FROM grade_components
                WHERE section_id=%s AND period=%s AND {scope}
                """,
                (int(section_id), period.value) + scope_params,
            )
            for r in fetchall(cur):
                key = (int(r["student_id"]), int(r["subject_id"]))
                components.setdefault(key, {})[ComponentType(r["component_type"])] = float(r["score"])

            cur.execute(
                """
                SELECT student_id, feedback
                FROM student_feedback
                WHERE section_id=%s AND period=%s AND subject_key=%s
                """,
                (int(section_id), period.value, int(subject_id or 0)),
            )
            for r in fetchall(cur):
                feedback[int(r["student_id"])] = r["feedback"]

        return GradeSheetSnapshot(components=components, feedback=feedback)

    @staticmethod
    def _to_component(r: dict) -> GradeComponent:
        return GradeComponent(
            student_id=int(r["student_id"]),
            section_id=int(r["section_id"]),
            subject_id=int(r["subject_id"]),
            period=GradingPeriod(r["period"]),
            component_type=ComponentType(r["component_type"]),
            score=float(r["score"]),
            recorded_by=r.get("recorded_by"),
            updated_at=r.get("updated_at"),
        )
