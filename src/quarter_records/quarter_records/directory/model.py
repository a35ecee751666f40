from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class ActorProfile:
    """Who is acting, as seen by the workflow.

    Note: advisory_section_id is the actor's home-room; taught_section_ids are
    the sections where the actor teaches at least one subject.
    """

    user_id: int
    role: Role
    advisory_section_id: Optional[int] = None
    taught_section_ids: FrozenSet[int] = frozenset()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def advises(self, section_id: int) -> bool:
        return self.advisory_section_id is not None and int(self.advisory_section_id) == int(section_id)

    def relates_to_section(self, section_id: int) -> bool:
        return self.advises(section_id) or int(section_id) in self.taught_section_ids
