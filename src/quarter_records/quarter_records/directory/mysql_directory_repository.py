from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ActorProfile
from .repository import ActorDirectory, EnrollmentRoster


class MySQLEnrollmentRoster(EnrollmentRoster):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active_students(self, section_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id
                FROM section_enrollments
                WHERE section_id=%s AND is_active=1
                ORDER BY student_id
                """,
                (int(section_id),),
            )
            return [int(r["student_id"]) for r in fetchall(cur)]


class MySQLActorDirectory(ActorDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_actor_role(self, user_id: int) -> Optional[ActorProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, role, advisory_section_id
                FROM users
                WHERE user_id=%s AND is_active=1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            if not r:
                return None

            cur.execute(
                "SELECT DISTINCT section_id FROM teaching_assignments WHERE teacher_id=%s",
                (int(user_id),),
            )
            taught = frozenset(int(t["section_id"]) for t in fetchall(cur))

            advisory = r.get("advisory_section_id")
            return ActorProfile(
                user_id=int(r["user_id"]),
                role=Role(r["role"]),
                advisory_section_id=int(advisory) if advisory is not None else None,
                taught_section_ids=taught,
            )
