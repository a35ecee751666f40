from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional

import pytest

from src.quarter_records.quarter_records.attendance.model import AttendanceRecord
from src.quarter_records.quarter_records.container import wire
from src.quarter_records.quarter_records.core.enums import ComponentType, GradingPeriod, PackageStatus, Role
from src.quarter_records.quarter_records.directory.model import ActorProfile
from src.quarter_records.quarter_records.grading.model import GradeComponent, GradeSheetSnapshot, StudentFeedback
from src.quarter_records.quarter_records.history.model import ApprovalHistoryEntry
from src.quarter_records.quarter_records.packages import workflow
from src.quarter_records.quarter_records.packages.model import QuarterPackage

BASE_TIME = datetime(2024, 6, 1, 8, 0, 0)

ADMIN = 1
ADVISER = 2  # advises section 101, teaches in 102
TEACHER = 3  # teaches in 101 and 102
OTHER_ADVISER = 4  # advises section 103 only
OTHER_TEACHER = 5

SECTION = 101
TAUGHT_SECTION = 102
EMPTY_SECTION = 103
SUBJECT = 7


class InMemoryRoster:
    def __init__(self, sections: dict[int, list[int]]):
        self.sections = sections

    def list_active_students(self, section_id: int):
        return list(self.sections.get(int(section_id), []))


class InMemoryDirectory:
    def __init__(self, actors: dict[int, ActorProfile]):
        self.actors = actors

    def get_actor_role(self, user_id: int) -> Optional[ActorProfile]:
        return self.actors.get(int(user_id))


class InMemoryGradebook:
    def __init__(self):
        self.components: dict[tuple, GradeComponent] = {}
        self.feedback: dict[tuple, StudentFeedback] = {}
        self.lock = threading.Lock()
        self.packages: Optional["InMemoryPackages"] = None

    def _guarded(self, section_id, subject_id, period, write):
        if self.packages is None:
            return write()
        return self.packages.write_guarded(section_id=section_id, subject_id=subject_id, period=period, write=write)

    def upsert_component(self, *, student_id, section_id, subject_id, period, component_type, score, recorded_by=None):
        self._guarded(
            section_id,
            subject_id,
            period,
            lambda: self._store_component(
                student_id=student_id,
                section_id=section_id,
                subject_id=subject_id,
                period=period,
                component_type=component_type,
                score=score,
                recorded_by=recorded_by,
            ),
        )

    def _store_component(self, *, student_id, section_id, subject_id, period, component_type, score, recorded_by=None):
        with self.lock:
            self.components[(student_id, subject_id, period, component_type)] = GradeComponent(
                student_id=student_id,
                section_id=section_id,
                subject_id=subject_id,
                period=period,
                component_type=component_type,
                score=float(score),
                recorded_by=recorded_by,
            )

    def get_components(self, *, student_id, subject_id, period):
        return {
            c.component_type: c.score
            for c in self.components.values()
            if c.student_id == student_id and c.subject_id == subject_id and c.period == period
        }

    def list_components(self, *, section_id, subject_id, period):
        rows = [
            c
            for c in self.components.values()
            if c.section_id == section_id
            and c.period == period
            and (subject_id is None or c.subject_id == subject_id)
        ]
        return sorted(rows, key=lambda c: (c.student_id, c.subject_id, c.component_type.value))

    def upsert_feedback(self, *, student_id, section_id, subject_id, period, text, recorded_by=None):
        def write():
            self.feedback[(student_id, section_id, subject_id, period)] = StudentFeedback(
                student_id=student_id,
                section_id=section_id,
                subject_id=subject_id,
                period=period,
                text=text,
                recorded_by=recorded_by,
            )

        self._guarded(section_id, subject_id, period, write)

    def list_feedback(self, *, section_id, subject_id, period):
        rows = [
            f
            for f in self.feedback.values()
            if f.section_id == section_id and f.subject_id == subject_id and f.period == period
        ]
        return sorted(rows, key=lambda f: f.student_id)

    def snapshot(self, *, section_id, subject_id, period):
        components: dict = {}
        for c in self.list_components(section_id=section_id, subject_id=subject_id, period=period):
            components.setdefault((c.student_id, c.subject_id), {})[c.component_type] = c.score
        feedback = {
            f.student_id: f.text
            for f in self.list_feedback(section_id=section_id, subject_id=subject_id, period=period)
        }
        return GradeSheetSnapshot(components=components, feedback=feedback)

    def final_for(self, student_id, subject_id, period):
        c = self.components.get((student_id, subject_id, period, ComponentType.FINAL))
        return c.score if c else None


class InMemoryHistory:
    def __init__(self):
        self.entries: list[ApprovalHistoryEntry] = []
        self.lock = threading.Lock()

    def append(self, entry) -> int:
        with self.lock:
            entry_id = len(self.entries) + 1
            self.entries.append(
                ApprovalHistoryEntry(
                    entry_id=entry_id,
                    package_id=entry.package_id,
                    action=entry.action,
                    actor_id=entry.actor_id,
                    actor_role=entry.actor_role,
                    remarks=entry.remarks,
                    created_at=BASE_TIME + timedelta(seconds=entry_id),
                )
            )
            return entry_id

    def list_for(self, package_id: int):
        # Newest first, so callers have to sort.
        return [e for e in reversed(self.entries) if e.package_id == package_id]


class InMemoryPackages:
    def __init__(self, gradebook: InMemoryGradebook, history: InMemoryHistory):
        self.gradebook = gradebook
        self.history = history
        self.by_id: dict[int, QuarterPackage] = {}
        self.lock = threading.Lock()
        self.before_apply: Optional[Callable[[], None]] = None
        self.apply_calls = 0

    def get_by_id(self, package_id: int):
        return self.by_id.get(int(package_id))

    def find(self, *, section_id, subject_id, period):
        for p in self.by_id.values():
            if p.section_id == section_id and p.subject_id == subject_id and p.period == period:
                return p
        return None

    def get_or_create(self, *, section_id, subject_id, period, owner_id):
        with self.lock:
            existing = self.find(section_id=section_id, subject_id=subject_id, period=period)
            if existing:
                return existing
            package_id = len(self.by_id) + 1
            p = QuarterPackage(
                package_id=package_id,
                section_id=section_id,
                subject_id=subject_id,
                period=period,
                status=PackageStatus.DRAFT,
                owner_id=owner_id,
                created_at=BASE_TIME,
                updated_at=BASE_TIME,
            )
            self.by_id[package_id] = p
            return p

    def list_by_status(self, *, status, limit=200):
        return [p for p in self.by_id.values() if p.status == status][:limit]

    def list_for_section(self, *, section_id):
        return [p for p in self.by_id.values() if p.section_id == section_id]

    def write_guarded(self, *, section_id, subject_id, period, write):
        """Row-locked edit check, revision bump and write in one step."""
        with self.lock:
            current = self.find(section_id=section_id, subject_id=subject_id, period=period)
            if current is not None:
                workflow.ensure_status_editable(current.status, package_id=current.package_id)
                self.by_id[current.package_id] = replace(current, revision=current.revision + 1)
            return write()

    def apply_transition(
        self, *, package_id, expected_status, expected_revision, new_status, remarks, submitted_at, entry, final_grades=()
    ):
        self.apply_calls += 1
        if self.before_apply:
            self.before_apply()
        with self.lock:
            current = self.by_id[package_id]
            if current.status != expected_status or current.revision != expected_revision:
                return None
            updated = replace(
                current,
                status=new_status,
                remarks=remarks,
                submitted_at=submitted_at,
                revision=current.revision + 1,
            )
            self.by_id[package_id] = updated
            for g in final_grades:
                self.gradebook._store_component(
                    student_id=g.student_id,
                    section_id=g.section_id,
                    subject_id=g.subject_id,
                    period=g.period,
                    component_type=ComponentType.FINAL,
                    score=g.score,
                    recorded_by=entry.actor_id,
                )
            self.history.append(entry)
            return updated

    def force_status(self, package_id: int, status: PackageStatus) -> None:
        self.by_id[package_id] = replace(self.by_id[package_id], status=status)


class InMemoryAttendance:
    def __init__(self, packages: Optional["InMemoryPackages"] = None):
        self.records: dict[tuple[int, int, date], AttendanceRecord] = {}
        self.packages = packages

    def upsert_day(self, *, section_id, attendance_date, period, entries, recorded_by=None):
        def write():
            for e in entries:
                self.records[(e.student_id, section_id, attendance_date)] = AttendanceRecord(
                    student_id=e.student_id,
                    section_id=section_id,
                    attendance_date=attendance_date,
                    status=e.status,
                    period=period,
                    recorded_by=recorded_by,
                )
            return len(entries)

        if self.packages is None:
            return write()
        return self.packages.write_guarded(section_id=section_id, subject_id=None, period=period, write=write)

    def list_for_day(self, *, section_id, attendance_date):
        rows = [r for r in self.records.values() if r.section_id == section_id and r.attendance_date == attendance_date]
        return sorted(rows, key=lambda r: r.student_id)

    def list_for_period(self, *, section_id, period):
        rows = [r for r in self.records.values() if r.section_id == section_id and r.period == period]
        return sorted(rows, key=lambda r: (r.attendance_date, r.student_id))


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    def notify(self, event) -> None:
        self.events.append(event)
        if self.fail:
            raise RuntimeError("SMS gateway unavailable")


class World:
    """In-memory deployment: fake repositories wired into the real services."""

    def __init__(self, *, retries: int = 1, notifier=None):
        self.roster = InMemoryRoster(
            {
                SECTION: [1001, 1002, 1003],
                TAUGHT_SECTION: [2001, 2002],
                EMPTY_SECTION: [],
            }
        )
        self.directory = InMemoryDirectory(
            {
                ADMIN: ActorProfile(ADMIN, Role.ADMIN),
                ADVISER: ActorProfile(ADVISER, Role.ADVISER, advisory_section_id=SECTION, taught_section_ids=frozenset({TAUGHT_SECTION})),
                TEACHER: ActorProfile(TEACHER, Role.TEACHER, taught_section_ids=frozenset({SECTION, TAUGHT_SECTION})),
                OTHER_ADVISER: ActorProfile(OTHER_ADVISER, Role.ADVISER, advisory_section_id=EMPTY_SECTION),
                OTHER_TEACHER: ActorProfile(OTHER_TEACHER, Role.TEACHER, taught_section_ids=frozenset({SECTION})),
            }
        )
        self.gradebook = InMemoryGradebook()
        self.history = InMemoryHistory()
        self.packages = InMemoryPackages(self.gradebook, self.history)
        self.gradebook.packages = self.packages
        self.attendance = InMemoryAttendance(self.packages)
        self.notifier = notifier or RecordingNotifier()
        self.container = wire(
            packages_repo=self.packages,
            gradebook_repo=self.gradebook,
            attendance_repo=self.attendance,
            history_repo=self.history,
            roster=self.roster,
            directory=self.directory,
            notifier=self.notifier,
            retries=retries,
        )

    @property
    def packages_service(self):
        return self.container.package_service

    @property
    def grades(self):
        return self.container.gradebook_service

    def fill_sheet(
        self,
        *,
        section_id: int = SECTION,
        subject_id: int = SUBJECT,
        period: str = "Q1",
        actor_id: int = TEACHER,
        scores=(80, 90, 70),
        skip: Optional[tuple[int, ComponentType]] = None,
    ) -> None:
        """Record all three components and feedback for every active student."""
        written, performance, exam = scores
        for student_id in self.roster.list_active_students(section_id):
            for component, score in (
                (ComponentType.WRITTEN, written),
                (ComponentType.PERFORMANCE, performance),
                (ComponentType.EXAM, exam),
            ):
                if skip == (student_id, component):
                    continue
                self.grades.record_grade_component(
                    actor_id=actor_id,
                    student_id=student_id,
                    section_id=section_id,
                    subject_id=subject_id,
                    period=period,
                    component_type=component,
                    score=score,
                )
            self.grades.record_feedback(
                actor_id=actor_id,
                student_id=student_id,
                section_id=section_id,
                subject_id=subject_id,
                period=period,
                text="Keeps up with the lessons.",
            )

    def submitted_package(self, **kwargs) -> QuarterPackage:
        self.fill_sheet(**kwargs)
        return self.packages_service.submit_package(
            section_id=kwargs.get("section_id", SECTION),
            subject_id=kwargs.get("subject_id", SUBJECT),
            period=kwargs.get("period", "Q1"),
            actor_id=kwargs.get("actor_id", TEACHER),
        )

    def package(self, section_id: int = SECTION, subject_id: Optional[int] = SUBJECT, period: str = "Q1"):
        return self.packages.find(section_id=section_id, subject_id=subject_id, period=GradingPeriod.parse(period))


@pytest.fixture
def world() -> World:
    return World()
