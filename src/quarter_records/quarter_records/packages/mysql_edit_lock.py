from __future__ import annotations

from typing import Optional

from ..core.enums import GradingPeriod, PackageStatus
from ..database.mysql_base import fetchone
from . import workflow


def lock_scope_for_edit(cur, *, section_id: int, subject_id: Optional[int], period: GradingPeriod) -> Optional[int]:
    """Lock the package row that governs a record write and bump its revision.

    Must run on the writing cursor, before the write. While the row is locked
    no transition can commit, and the revision bump makes any Submit planned
    against an older snapshot lose its compare-and-set. With no package yet,
    FOR UPDATE still gap-locks the scope's unique key until the write commits.
    Returns the package id, or None when the scope has no package.
    """
    cur.execute(
        """
        SELECT package_id, status
        FROM quarter_packages
        WHERE section_id=%s AND subject_key=%s AND period=%s
        FOR UPDATE
        """,
        (int(section_id), int(subject_id or 0), period.value),
    )
    r = fetchone(cur)
    if not r:
        return None

    package_id = int(r["package_id"])
    workflow.ensure_status_editable(PackageStatus(r["status"]), package_id=package_id)
    cur.execute("UPDATE quarter_packages SET revision=revision+1 WHERE package_id=%s", (package_id,))
    return package_id
