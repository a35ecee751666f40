import itertools
import threading

import pytest

from conftest import ADMIN, ADVISER, SECTION, SUBJECT, TEACHER, World
from src.quarter_records.quarter_records.core.enums import ApprovalAction, ComponentType, GradingPeriod, PackageStatus
from src.quarter_records.quarter_records.core.exceptions import (
    ConcurrentModificationError,
    DomainError,
    InvalidTransitionError,
    PackageLockedError,
)


def _race(world, package_id, actor_ids):
    results, errors = [], []

    def approve(actor_id):
        try:
            results.append(world.packages_service.approve_package(package_id=package_id, actor_id=actor_id))
        except DomainError as e:
            errors.append(e)

    threads = [threading.Thread(target=approve, args=(a,)) for a in actor_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results, errors


def test_concurrent_approvals_without_retry():
    world = World(retries=0)
    package = world.submitted_package()
    barrier = threading.Barrier(2, timeout=5)
    world.packages.before_apply = barrier.wait

    results, errors = _race(world, package.package_id, [ADMIN, ADVISER])

    assert len(results) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], ConcurrentModificationError)
    assert errors[0].expected == PackageStatus.SUBMITTED
    assert world.package().status in {PackageStatus.APPROVED, PackageStatus.FORWARDED_TO_ADMIN}
    approvals = [e for e in world.history.entries if e.action == ApprovalAction.APPROVE]
    assert len(approvals) == 1


def test_concurrent_approvals_loser_rereads_and_sees_approved():
    world = World(retries=1)
    package = world.submitted_package()
    barrier = threading.Barrier(2, timeout=5)
    calls = itertools.count()

    def first_two_wait():
        if next(calls) < 2:
            barrier.wait()

    world.packages.before_apply = first_two_wait

    results, errors = _race(world, package.package_id, [ADMIN, ADMIN])

    assert len(results) == 1
    assert results[0].status == PackageStatus.APPROVED
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidTransitionError)
    assert errors[0].actual == PackageStatus.APPROVED
    approvals = [e for e in world.history.entries if e.action == ApprovalAction.APPROVE]
    assert len(approvals) == 1


def _write_grade(world, score):
    world.grades.record_grade_component(
        actor_id=TEACHER,
        student_id=1001,
        section_id=SECTION,
        subject_id=SUBJECT,
        period="Q1",
        component_type=ComponentType.WRITTEN,
        score=score,
    )


def test_grade_write_landing_after_submit_commits_is_rejected(monkeypatch):
    world = World()
    world.fill_sheet()
    store = world.gradebook.upsert_component

    def submit_then_store(**kwargs):
        monkeypatch.setattr(world.gradebook, "upsert_component", store)
        world.packages_service.submit_package(section_id=SECTION, subject_id=SUBJECT, period="Q1", actor_id=TEACHER)
        return store(**kwargs)

    monkeypatch.setattr(world.gradebook, "upsert_component", submit_then_store)

    with pytest.raises(PackageLockedError):
        _write_grade(world, 20)

    assert world.package().status == PackageStatus.SUBMITTED
    scores = world.gradebook.get_components(student_id=1001, subject_id=SUBJECT, period=GradingPeriod.Q1)
    assert scores[ComponentType.WRITTEN] == 80
    assert scores[ComponentType.FINAL] == 83


def test_grade_written_while_submit_is_planned_reaches_the_final():
    world = World(retries=1)
    world.fill_sheet()
    pending = [20]

    def late_write():
        if pending:
            _write_grade(world, pending.pop())

    world.packages.before_apply = late_write

    package = world.packages_service.submit_package(
        section_id=SECTION, subject_id=SUBJECT, period="Q1", actor_id=TEACHER
    )

    assert package.status == PackageStatus.SUBMITTED
    assert world.packages.apply_calls == 2
    assert world.gradebook.final_for(1001, SUBJECT, GradingPeriod.Q1) == 65
    assert world.gradebook.final_for(1002, SUBJECT, GradingPeriod.Q1) == 83
    submits = [e for e in world.history.entries if e.action == ApprovalAction.SUBMIT]
    assert len(submits) == 1


def test_grade_written_while_submit_is_planned_without_retry():
    world = World(retries=0)
    world.fill_sheet()
    pending = [20]

    def late_write():
        if pending:
            _write_grade(world, pending.pop())

    world.packages.before_apply = late_write

    with pytest.raises(ConcurrentModificationError):
        world.packages_service.submit_package(section_id=SECTION, subject_id=SUBJECT, period="Q1", actor_id=TEACHER)

    assert world.package().status == PackageStatus.DRAFT
    assert world.gradebook.final_for(1001, SUBJECT, GradingPeriod.Q1) is None
