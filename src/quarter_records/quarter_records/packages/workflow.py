"""Quarter package state machine.

The only place that knows which action is legal from which state, who may
trigger it and where an approval is routed. Services call into it; the HTTP
layer renders whatever status or error comes back.
"""

from __future__ import annotations

from typing import Optional

from ..core.enums import ApprovalAction, PackageStatus, Role
from ..core.exceptions import InvalidTransitionError, PackageLockedError, UnauthorizedError
from ..directory.model import ActorProfile
from .model import QuarterPackage

TRANSITIONS: dict[tuple[PackageStatus, ApprovalAction], PackageStatus] = {
    (PackageStatus.DRAFT, ApprovalAction.SUBMIT): PackageStatus.SUBMITTED,
    (PackageStatus.RETURNED, ApprovalAction.SUBMIT): PackageStatus.SUBMITTED,
    (PackageStatus.SUBMITTED, ApprovalAction.APPROVE): PackageStatus.APPROVED,
    (PackageStatus.SUBMITTED, ApprovalAction.RETURN): PackageStatus.RETURNED,
    (PackageStatus.FORWARDED_TO_ADMIN, ApprovalAction.APPROVE): PackageStatus.APPROVED,
    (PackageStatus.APPROVED, ApprovalAction.PUBLISH): PackageStatus.PUBLISHED,
}

EDITABLE_STATES = frozenset({PackageStatus.DRAFT, PackageStatus.RETURNED})

STATUS_LABELS = {
    PackageStatus.DRAFT: "Draft",
    PackageStatus.SUBMITTED: "Submitted for review",
    PackageStatus.RETURNED: "Returned for revision",
    PackageStatus.APPROVED: "Approved",
    PackageStatus.FORWARDED_TO_ADMIN: "Forwarded to admin",
    PackageStatus.PUBLISHED: "Published",
}


def current_status(package: Optional[QuarterPackage]) -> PackageStatus:
    # No package row yet means the package is still an implicit draft.
    return package.status if package else PackageStatus.DRAFT


def label_for(status: PackageStatus) -> str:
    return STATUS_LABELS[status]


def is_editable(status: PackageStatus) -> bool:
    return status in EDITABLE_STATES


def next_status(package: QuarterPackage, action: ApprovalAction) -> PackageStatus:
    target = TRANSITIONS.get((package.status, action))
    if target is None:
        raise InvalidTransitionError(
            f"Cannot {action.value.lower()} a package that is {label_for(package.status).lower()}",
            package_id=package.package_id,
            action=action,
            actual=package.status,
        )
    return target


def approval_target(actor_role: Role, actor_advisory_section_id: Optional[int], section_id: int) -> PackageStatus:
    """Where approving a Submitted package lands.

    An adviser approving their own home-room section forwards it to an admin
    for final approval; every other approval is final.
    """
    if (
        actor_role == Role.ADVISER
        and actor_advisory_section_id is not None
        and int(actor_advisory_section_id) == int(section_id)
    ):
        return PackageStatus.FORWARDED_TO_ADMIN
    return PackageStatus.APPROVED


def authorize(actor: ActorProfile, package: QuarterPackage, action: ApprovalAction) -> None:
    if action == ApprovalAction.SUBMIT:
        allowed = actor.role in {Role.TEACHER, Role.ADVISER} and int(package.owner_id) == int(actor.user_id)
    elif action == ApprovalAction.PUBLISH:
        allowed = actor.is_admin
    elif action == ApprovalAction.APPROVE and package.status == PackageStatus.FORWARDED_TO_ADMIN:
        allowed = actor.is_admin
    elif action in {ApprovalAction.APPROVE, ApprovalAction.RETURN}:
        allowed = actor.is_admin or (actor.role == Role.ADVISER and actor.relates_to_section(package.section_id))
    else:
        allowed = False

    if not allowed:
        raise UnauthorizedError(
            f"{actor.role.value.capitalize()} {actor.user_id} may not {action.value.lower()} this package",
            package_id=package.package_id,
            action=action,
            actor_id=actor.user_id,
        )


def ensure_status_editable(status: PackageStatus, *, package_id: Optional[int] = None) -> None:
    if not is_editable(status):
        raise PackageLockedError(
            f"Package is {label_for(status).lower()}; records can only change while it is a draft or returned",
            package_id=package_id,
            actual=status,
        )


def ensure_editable(package: Optional[QuarterPackage]) -> None:
    ensure_status_editable(current_status(package), package_id=package.package_id if package else None)
