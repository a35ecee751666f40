from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ApprovalAction, Role


@dataclass(frozen=True)
class ApprovalHistoryEntry:
    """Domain entity: one applied transition of a quarter package (append-only)."""

    entry_id: int
    package_id: int
    action: ApprovalAction
    actor_id: int
    actor_role: Role
    created_at: datetime
    remarks: Optional[str] = None


@dataclass(frozen=True)
class NewHistoryEntry:
    package_id: int
    action: ApprovalAction
    actor_id: int
    actor_role: Role
    remarks: Optional[str] = None
