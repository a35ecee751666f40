from __future__ import annotations

from typing import Protocol, Sequence

from .model import ApprovalHistoryEntry, NewHistoryEntry


class HistoryRepository(Protocol):
    """Append-only ledger: no update or delete operations exist."""

    def append(self, entry: NewHistoryEntry) -> int:
        raise NotImplementedError

    def list_for(self, package_id: int) -> Sequence[ApprovalHistoryEntry]:
        """Entries ordered by created_at ascending."""

        raise NotImplementedError
