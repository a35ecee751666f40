from __future__ import annotations

from ..core.exceptions import NotFoundError
from ..packages.repository import PackageRepository
from .model import ApprovalHistoryEntry, NewHistoryEntry
from .repository import HistoryRepository


class ApprovalHistoryService:
    def __init__(self, history: HistoryRepository, packages: PackageRepository):
        self._history = history
        self._packages = packages

    def append(self, entry: NewHistoryEntry) -> int:
        if not self._packages.get_by_id(int(entry.package_id)):
            raise NotFoundError("Quarter package not found", package_id=entry.package_id)
        return self._history.append(entry)

    def list_for(self, package_id: int) -> list[ApprovalHistoryEntry]:
        entries = list(self._history.list_for(int(package_id)))
        entries.sort(key=lambda e: (e.created_at, e.entry_id))
        return entries
