from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.app_logger import get_logger
from ..common.datetime_utils import now_local
from ..common.validators import require_max_length, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT, DEFAULT_TRANSITION_RETRIES, MAX_REMARKS_LENGTH
from ..core.enums import ApprovalAction, GradingPeriod, PackageStatus, Role
from ..core.exceptions import ConcurrentModificationError, NotFoundError, UnauthorizedError, ValidationError
from ..directory.model import ActorProfile
from ..directory.repository import ActorDirectory, EnrollmentRoster
from ..grading.calculator.base import GradeCalculator
from ..grading.calculator.weighted_calculator import WeightedGradeCalculator
from ..grading.model import FinalGrade, GradeSheetSnapshot
from ..grading.repository import GradebookRepository
from ..history.model import ApprovalHistoryEntry, NewHistoryEntry
from ..history.service import ApprovalHistoryService
from ..notifications.notifier import LoggingNotifier, Notifier, PackageEvent
from . import workflow
from .model import QuarterPackage
from .repository import PackageRepository

logger = get_logger("packages")

NOTIFIED_ACTIONS = frozenset({ApprovalAction.SUBMIT, ApprovalAction.RETURN, ApprovalAction.PUBLISH})


@dataclass(frozen=True)
class _Transition:
    new_status: PackageStatus
    remarks: Optional[str]
    submitted_at: Optional[datetime]
    final_grades: Sequence[FinalGrade] = ()


class PackageService:
    """Approval workflow engine for quarter packages.

    Every transition is a compare-and-set on the package's current status and
    revision, so a record written after planning also loses the race. A lost
    race is re-read and re-planned up to `retries` times, after which
    ConcurrentModificationError reaches the caller.
    """

    def __init__(
        self,
        packages: PackageRepository,
        gradebook: GradebookRepository,
        history: ApprovalHistoryService,
        roster: EnrollmentRoster,
        directory: ActorDirectory,
        *,
        calculator: Optional[GradeCalculator] = None,
        notifier: Optional[Notifier] = None,
        retries: int = DEFAULT_TRANSITION_RETRIES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._packages = packages
        self._gradebook = gradebook
        self._history = history
        self._roster = roster
        self._directory = directory
        self._calculator = calculator or WeightedGradeCalculator()
        self._notifier = notifier or LoggingNotifier()
        self._retries = max(int(retries), 0)
        self._clock = clock

    # -------- Queries --------
    def get_package(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod | str,
    ) -> Optional[QuarterPackage]:
        return self._packages.find(
            section_id=int(section_id),
            subject_id=int(subject_id) if subject_id is not None else None,
            period=GradingPeriod.parse(period),
        )

    def get_package_by_id(self, package_id: int) -> QuarterPackage:
        return self._require(package_id)

    def list_packages(self, *, status: PackageStatus | str, limit: int = DEFAULT_LIST_LIMIT) -> list[QuarterPackage]:
        return list(self._packages.list_by_status(status=self._parse_status(status), limit=int(limit)))

    def list_section_packages(self, *, section_id: int) -> list[QuarterPackage]:
        return list(self._packages.list_for_section(section_id=int(section_id)))

    def list_adviser_packages(
        self, *, adviser_id: int, status: PackageStatus | str | None = None
    ) -> list[QuarterPackage]:
        """Packages of the section the actor advises, every subject and period."""
        adviser = self._actor(adviser_id)
        if adviser.role != Role.ADVISER or adviser.advisory_section_id is None:
            raise ValidationError("Actor is not a section adviser", actor_id=adviser.user_id)
        wanted = self._parse_status(status) if status else None
        return [
            p
            for p in self._packages.list_for_section(section_id=int(adviser.advisory_section_id))
            if wanted is None or p.status == wanted
        ]

    def get_history(self, package_id: int) -> list[ApprovalHistoryEntry]:
        self._require(package_id)
        return self._history.list_for(int(package_id))

    # -------- Transitions --------
    def submit_package(
        self,
        *,
        section_id: int,
        subject_id: Optional[int],
        period: GradingPeriod | str,
        actor_id: int,
    ) -> QuarterPackage:
        actor = self._actor(actor_id)
        period = GradingPeriod.parse(period)
        if actor.role not in {Role.TEACHER, Role.ADVISER}:
            raise UnauthorizedError(
                "Only the teacher who owns the package can submit it",
                action=ApprovalAction.SUBMIT,
                actor_id=actor.user_id,
            )

        def load() -> QuarterPackage:
            return self._packages.get_or_create(
                section_id=int(section_id),
                subject_id=int(subject_id) if subject_id is not None else None,
                period=period,
                owner_id=actor.user_id,
            )

        def plan(package: QuarterPackage) -> _Transition:
            new_status = workflow.next_status(package, ApprovalAction.SUBMIT)
            workflow.authorize(actor, package, ApprovalAction.SUBMIT)
            finals = self._final_grades_for_submission(package)
            return _Transition(
                new_status=new_status,
                remarks=package.remarks,
                submitted_at=self._clock(),
                final_grades=finals,
            )

        return self._run(ApprovalAction.SUBMIT, actor, load, plan)

    def approve_package(self, *, package_id: int, actor_id: int) -> QuarterPackage:
        actor = self._actor(actor_id)

        def plan(package: QuarterPackage) -> _Transition:
            new_status = workflow.next_status(package, ApprovalAction.APPROVE)
            workflow.authorize(actor, package, ApprovalAction.APPROVE)
            if package.status == PackageStatus.SUBMITTED:
                new_status = workflow.approval_target(actor.role, actor.advisory_section_id, package.section_id)
            return _Transition(new_status=new_status, remarks=None, submitted_at=package.submitted_at)

        return self._run(ApprovalAction.APPROVE, actor, lambda: self._require(package_id), plan)

    def return_package(self, *, package_id: int, actor_id: int, remarks: str) -> QuarterPackage:
        actor = self._actor(actor_id)

        def plan(package: QuarterPackage) -> _Transition:
            new_status = workflow.next_status(package, ApprovalAction.RETURN)
            workflow.authorize(actor, package, ApprovalAction.RETURN)
            text = require_non_empty(remarks, "Remarks")
            require_max_length(text, "Remarks", MAX_REMARKS_LENGTH)
            return _Transition(new_status=new_status, remarks=text, submitted_at=None)

        return self._run(ApprovalAction.RETURN, actor, lambda: self._require(package_id), plan)

    def publish_package(self, *, package_id: int, actor_id: int) -> QuarterPackage:
        actor = self._actor(actor_id)

        def plan(package: QuarterPackage) -> _Transition:
            new_status = workflow.next_status(package, ApprovalAction.PUBLISH)
            workflow.authorize(actor, package, ApprovalAction.PUBLISH)
            return _Transition(new_status=new_status, remarks=package.remarks, submitted_at=package.submitted_at)

        return self._run(ApprovalAction.PUBLISH, actor, lambda: self._require(package_id), plan)

    # -------- Internals --------
    def _run(
        self,
        action: ApprovalAction,
        actor: ActorProfile,
        load: Callable[[], QuarterPackage],
        plan: Callable[[QuarterPackage], _Transition],
    ) -> QuarterPackage:
        package = None
        for attempt in range(self._retries + 1):
            package = load()
            step = plan(package)
            updated = self._packages.apply_transition(
                package_id=package.package_id,
                expected_status=package.status,
                expected_revision=package.revision,
                new_status=step.new_status,
                remarks=step.remarks,
                submitted_at=step.submitted_at,
                entry=NewHistoryEntry(
                    package_id=package.package_id,
                    action=action,
                    actor_id=actor.user_id,
                    actor_role=actor.role,
                    remarks=step.remarks if action == ApprovalAction.RETURN else None,
                ),
                final_grades=step.final_grades,
            )
            if updated is not None:
                logger.info(
                    "package=%s %s: %s -> %s by %s=%s",
                    package.package_id,
                    action.value,
                    package.status.value,
                    updated.status.value,
                    actor.role.value,
                    actor.user_id,
                )
                if action in NOTIFIED_ACTIONS:
                    self._notify(action, updated, actor)
                return updated

            logger.warning(
                "package=%s %s lost a concurrent update (expected %s, attempt %d)",
                package.package_id,
                action.value,
                package.status.value,
                attempt + 1,
            )

        raise ConcurrentModificationError(
            "The package was changed by someone else; refresh and try again",
            package_id=package.package_id if package else None,
            expected=package.status if package else None,
            action=action,
        )

    def _final_grades_for_submission(self, package: QuarterPackage) -> list[FinalGrade]:
        students = list(self._roster.list_active_students(package.section_id))
        if not students:
            raise ValidationError("Section has no active students to submit", package_id=package.package_id)

        snapshot = self._gradebook.snapshot(
            section_id=package.section_id,
            subject_id=package.subject_id,
            period=package.period,
        )
        subject_ids = [package.subject_id] if package.subject_id is not None else snapshot.subject_ids()

        self._check_complete(package, students, subject_ids, snapshot)

        # Finals belong to each subject's own package and are written when that one is submitted.
        if package.is_section_wide:
            return []

        return [
            FinalGrade(
                student_id=student_id,
                section_id=package.section_id,
                subject_id=subject_id,
                period=package.period,
                score=self._calculator.compute_from_scores(snapshot.scores(student_id, subject_id)),
            )
            for student_id in students
            for subject_id in subject_ids
        ]

    @staticmethod
    def _check_complete(
        package: QuarterPackage,
        students: list[int],
        subject_ids: list[int],
        snapshot: GradeSheetSnapshot,
    ) -> None:
        for student_id in students:
            if not subject_ids:
                raise ValidationError(
                    f"Student {student_id} has no grades recorded",
                    student_id=student_id,
                    package_id=package.package_id,
                )
            for subject_id in subject_ids:
                missing = snapshot.missing_components(student_id, subject_id)
                if missing:
                    names = ", ".join(c.value.lower() for c in missing)
                    raise ValidationError(
                        f"Student {student_id} is missing {names} grade(s)",
                        student_id=student_id,
                        package_id=package.package_id,
                        subject_id=subject_id,
                    )
            if not snapshot.has_feedback(student_id):
                raise ValidationError(
                    f"Student {student_id} has no feedback",
                    student_id=student_id,
                    package_id=package.package_id,
                )

    def _notify(self, action: ApprovalAction, package: QuarterPackage, actor: ActorProfile) -> None:
        event = PackageEvent(
            package_id=package.package_id,
            action=action,
            status=package.status,
            section_id=package.section_id,
            subject_id=package.subject_id,
            period=package.period,
            owner_id=package.owner_id,
            actor_id=actor.user_id,
            remarks=package.remarks if action == ApprovalAction.RETURN else None,
        )
        try:
            self._notifier.notify(event)
        except Exception:
            # Delivery is best-effort; the transition is already committed.
            logger.exception("notification failed for package=%s action=%s", package.package_id, action.value)

    @staticmethod
    def _parse_status(status: PackageStatus | str) -> PackageStatus:
        if isinstance(status, PackageStatus):
            return status
        try:
            return PackageStatus(str(status).strip().upper())
        except ValueError:
            raise ValidationError(f"Unknown package status: {status!r}")

    def _actor(self, actor_id: int) -> ActorProfile:
        actor = self._directory.get_actor_role(int(actor_id))
        if not actor:
            raise UnauthorizedError("Unknown actor", actor_id=actor_id)
        return actor

    def _require(self, package_id: int) -> QuarterPackage:
        package = self._packages.get_by_id(int(package_id))
        if not package:
            raise NotFoundError("Quarter package not found", package_id=package_id)
        return package
