from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .approvals.service import ApprovalService
from .attendance.factory import VerificationStrategyFactory
from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS, DEFAULT_LATE_GRACE_MINUTES
from .core.enums import Role
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .database.memory import InMemoryDatabase
from .meetings.memory_meeting_repository import InMemoryMeetingRepository
from .meetings.mysql_meeting_repository import MySQLMeetingRepository
from .meetings.repository import MeetingRepository
from .meetings.service import MeetingService
from .users.memory_user_repository import InMemoryUserRepository
from .users.model import User
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    meetings_repo: MeetingRepository
    attendance_repo: AttendanceRepository

    attendance_service: AttendanceService
    approval_service: ApprovalService
    meeting_service: MeetingService
    dashboard_service: DashboardService


def _wire(
    *,
    users_repo: UserRepository,
    meetings_repo: MeetingRepository,
    attendance_repo: AttendanceRepository,
    grace_minutes: int,
) -> Container:
    return Container(
        users_repo=users_repo,
        meetings_repo=meetings_repo,
        attendance_repo=attendance_repo,
        attendance_service=AttendanceService(
            attendance_repo,
            meetings_repo,
            users_repo,
            strategy_factory=VerificationStrategyFactory(),
            grace_minutes=grace_minutes,
        ),
        approval_service=ApprovalService(attendance_repo, users_repo),
        meeting_service=MeetingService(meetings_repo),
        dashboard_service=DashboardService(meetings_repo, attendance_repo),
    )


def build_container(
    *,
    db_config: dict,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    lock_timeout: float = DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return _wire(
        users_repo=MySQLUserRepository(conn),
        meetings_repo=MySQLMeetingRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn, lock_timeout=lock_timeout),
        grace_minutes=grace_minutes,
    )


def build_memory_container(
    *,
    db: Optional[InMemoryDatabase] = None,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    lock_timeout: float = DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS,
    seed_admin: bool = True,
) -> Container:
    """Process-local backend for development and tests."""
    db = db or InMemoryDatabase()
    if seed_admin and not db.users:
        db.add_user(User(user_id=1, username="admin", email="admin@example.com", full_name="Admin User", role=Role.ADMIN))

    return _wire(
        users_repo=InMemoryUserRepository(db),
        meetings_repo=InMemoryMeetingRepository(db),
        attendance_repo=InMemoryAttendanceRepository(db, lock_timeout=lock_timeout),
        grace_minutes=grace_minutes,
    )
