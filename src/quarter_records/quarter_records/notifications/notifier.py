from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..common.app_logger import get_logger
from ..core.enums import ApprovalAction, GradingPeriod, PackageStatus

logger = get_logger("notifications")


@dataclass(frozen=True)
class PackageEvent:
    package_id: int
    action: ApprovalAction
    status: PackageStatus
    section_id: int
    subject_id: Optional[int]
    period: GradingPeriod
    owner_id: int
    actor_id: int
    remarks: Optional[str] = None


class Notifier(Protocol):
    """Fire-and-forget dispatch (SMS/email delivery lives outside this system)."""

    def notify(self, event: PackageEvent) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default notifier: records the signal in the application log."""

    def notify(self, event: PackageEvent) -> None:
        logger.info(
            "notify package=%s action=%s status=%s owner=%s actor=%s",
            event.package_id,
            event.action.value,
            event.status.value,
            event.owner_id,
            event.actor_id,
        )
