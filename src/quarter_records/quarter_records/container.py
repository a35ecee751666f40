from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TRANSITION_RETRIES
from .database.connection import DBConfig, DatabaseConnection
from .directory.mysql_directory_repository import MySQLActorDirectory, MySQLEnrollmentRoster
from .directory.repository import ActorDirectory, EnrollmentRoster
from .grading.mysql_grade_repository import MySQLGradebookRepository
from .grading.repository import GradebookRepository
from .grading.service import GradebookService
from .history.mysql_history_repository import MySQLHistoryRepository
from .history.repository import HistoryRepository
from .history.service import ApprovalHistoryService
from .notifications.notifier import Notifier
from .packages.mysql_package_repository import MySQLPackageRepository
from .packages.repository import PackageRepository
from .packages.service import PackageService
from .reports.service import ReportService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    packages_repo: PackageRepository
    gradebook_repo: GradebookRepository
    attendance_repo: AttendanceRepository
    history_repo: HistoryRepository
    roster: EnrollmentRoster
    directory: ActorDirectory

    package_service: PackageService
    gradebook_service: GradebookService
    attendance_service: AttendanceService
    history_service: ApprovalHistoryService
    report_service: ReportService


def wire(
    *,
    packages_repo: PackageRepository,
    gradebook_repo: GradebookRepository,
    attendance_repo: AttendanceRepository,
    history_repo: HistoryRepository,
    roster: EnrollmentRoster,
    directory: ActorDirectory,
    conn: Optional[DatabaseConnection] = None,
    notifier: Optional[Notifier] = None,
    retries: int = DEFAULT_TRANSITION_RETRIES,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""
    history_service = ApprovalHistoryService(history_repo, packages_repo)
    package_service = PackageService(
        packages_repo,
        gradebook_repo,
        history_service,
        roster,
        directory,
        notifier=notifier,
        retries=retries,
    )
    gradebook_service = GradebookService(gradebook_repo, packages_repo, roster)
    attendance_service = AttendanceService(attendance_repo, packages_repo, roster)
    report_service = ReportService(gradebook_repo, attendance_repo, roster)

    return Container(
        conn=conn,
        packages_repo=packages_repo,
        gradebook_repo=gradebook_repo,
        attendance_repo=attendance_repo,
        history_repo=history_repo,
        roster=roster,
        directory=directory,
        package_service=package_service,
        gradebook_service=gradebook_service,
        attendance_service=attendance_service,
        history_service=history_service,
        report_service=report_service,
    )


def build_container(
    *,
    db_config: dict,
    retries: int = DEFAULT_TRANSITION_RETRIES,
    notifier: Optional[Notifier] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))

    return wire(
        conn=conn,
        packages_repo=MySQLPackageRepository(conn),
        gradebook_repo=MySQLGradebookRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        history_repo=MySQLHistoryRepository(conn),
        roster=MySQLEnrollmentRoster(conn),
        directory=MySQLActorDirectory(conn),
        notifier=notifier,
        retries=retries,
    )
