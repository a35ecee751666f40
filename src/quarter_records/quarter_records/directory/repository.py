from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ActorProfile


class EnrollmentRoster(Protocol):
    """Enrollment lookup owned by the records system (external collaborator)."""

    def list_active_students(self, section_id: int) -> Sequence[int]:
        raise NotImplementedError


class ActorDirectory(Protocol):
    """Role/identity lookup owned by the accounts system (external collaborator)."""

    def get_actor_role(self, user_id: int) -> Optional[ActorProfile]:
        raise NotImplementedError
