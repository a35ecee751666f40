from __future__ import annotations

from typing import Sequence

from ..core.enums import ApprovalAction, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ApprovalHistoryEntry, NewHistoryEntry
from .repository import HistoryRepository


def insert_history_row(cur, entry: NewHistoryEntry) -> int:
    """Shared by the package repository so the entry commits with its transition."""
    cur.execute(
        """
        INSERT INTO approval_history(package_id, action, actor_id, actor_role, remarks)
        VALUES(%s,%s,%s,%s,%s)
        """,
        (
            int(entry.package_id),
            entry.action.value,
            int(entry.actor_id),
            entry.actor_role.value,
            entry.remarks,
        ),
    )
    return int(cur.lastrowid)


class MySQLHistoryRepository(HistoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: NewHistoryEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_history_row(cur, entry)

    def list_for(self, package_id: int) -> Sequence[ApprovalHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT entry_id, package_id, action, actor_id, actor_role, remarks, created_at
                FROM approval_history
                WHERE package_id=%s
                ORDER BY created_at ASC, entry_id ASC
                """,
                (int(package_id),),
            )
            return [
                ApprovalHistoryEntry(
                    entry_id=int(r["entry_id"]),
                    package_id=int(r["package_id"]),
                    action=ApprovalAction(r["action"]),
                    actor_id=int(r["actor_id"]),
                    actor_role=Role(r["actor_role"]),
                    remarks=r.get("remarks"),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
